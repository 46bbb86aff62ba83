# wallet.py
# JSON-over-HTTP client for the wallet service (BRC-100 interface).

import requests

from p2pvoicemail.backend import settings
from p2pvoicemail.backend.errors import WalletError

################################################################################

SELF = 'self'


def to_wire(data):
    '''bytes -> the wallet's number[] form'''
    return list(bytes(data))


def from_wire(data):
    '''number[] (or hex string) -> bytes'''
    if data is None:
        return None
    if isinstance(data, str):
        return bytes.fromhex(data)

    return bytes(data)


class WalletClient(object):
    '''
    thin client for the wallet service. every call is a POST of the args
    as JSON to `{url}/{method}`, the reply is the JSON result.
    '''

    def __init__(self, url=settings.WALLET_URL, originator='p2pvoicemail', timeout=settings.REQUEST_TIMEOUT, session=None):
        self.url = url.rstrip('/')
        self.originator = originator
        self.timeout = timeout
        self.session = session or requests.Session()
        self._identity_key = None


    def call(self, method, args, timeout=None):
        '''hit `{url}/{method}/` with `args`'''
        api = f'{self.url}/{method}'
        headers = {
            'Accept': 'application/json',
            'Originator': self.originator
        }

        try:
            response = self.session.post(api, json=args, headers=headers, timeout=timeout or self.timeout)
        except requests.exceptions.Timeout:
            raise WalletError(method, 'request timed out') from None
        except requests.exceptions.RequestException as e:
            raise WalletError(method, f'{e.__class__.__name__}: {e}') from None

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            raise WalletError(method, data.get('message') or response.text or f'HTTP {response.status_code}', code=data.get('code'))

        return data


    ## keys

    def identity_key(self):
        '''our identity public key (hex), cached'''
        if self._identity_key is None:
            self._identity_key = self.call('getPublicKey', {'identityKey': True})['publicKey']

        return self._identity_key

    def get_public_key(self, protocol_id, key_id, counterparty=SELF, for_self=False):
        '''derived public key (bytes) for (protocol, key id, counterparty)'''
        result = self.call('getPublicKey', {
            'protocolID': protocol_id,
            'keyID': key_id,
            'counterparty': counterparty,
            'forSelf': for_self
        })

        return bytes.fromhex(result['publicKey'])


    ## crypto

    def encrypt(self, plaintext, protocol_id, key_id, counterparty=SELF):
        result = self.call('encrypt', {
            'plaintext': to_wire(plaintext),
            'protocolID': protocol_id,
            'keyID': key_id,
            'counterparty': counterparty
        })

        return from_wire(result['ciphertext'])

    def decrypt(self, ciphertext, protocol_id, key_id, counterparty=SELF):
        result = self.call('decrypt', {
            'ciphertext': to_wire(ciphertext),
            'protocolID': protocol_id,
            'keyID': key_id,
            'counterparty': counterparty
        })

        return from_wire(result['plaintext'])

    def create_signature(self, data, protocol_id, key_id, counterparty=SELF):
        '''DER signature over sha256(`data`)'''
        result = self.call('createSignature', {
            'data': to_wire(data),
            'protocolID': protocol_id,
            'keyID': key_id,
            'counterparty': counterparty
        })

        return from_wire(result['signature'])


    ## outputs and actions

    def list_outputs(self, basket, include_beef=True, limit=settings.LIST_LIMIT):
        '''
        @return {'outputs': [{outpoint, satoshis, ...}], 'BEEF': bytes or None}
        '''
        args = {'basket': basket, 'limit': limit}
        if include_beef:
            args['include'] = 'entire transactions'

        result = self.call('listOutputs', args)
        result['outputs'] = result.get('outputs') or []
        result['BEEF'] = from_wire(result.get('BEEF'))
        return result

    def create_action(self, description, outputs=None, inputs=None, input_beef=None, timeout=None):
        '''
        create (and, without inputs to unlock, also sign and send) an action.

        `outputs`: [{lockingScript (hex), satoshis, basket, outputDescription}]
        `inputs`: [{outpoint, inputDescription, unlockingScriptLength}]

        @return {'txid', 'tx': bytes or None, 'signableTransaction': {'tx': bytes, 'reference'} or None}
        '''
        args = {
            'description': description[:settings.MAX_DESCRIPTION],
            'outputs': outputs or [],
            'options': {
                'randomizeOutputs': False,
                'acceptDelayedBroadcast': False
            }
        }
        if inputs:
            args['inputs'] = inputs
        if input_beef is not None:
            args['inputBEEF'] = to_wire(input_beef)

        result = self.call('createAction', args, timeout=timeout)
        result['tx'] = from_wire(result.get('tx'))

        signable = result.get('signableTransaction')
        if signable:
            signable['tx'] = from_wire(signable.get('tx'))

        return result

    def sign_action(self, reference, spends):
        '''`spends`: {input index: unlocking script bytes}'''
        result = self.call('signAction', {
            'reference': reference,
            'spends': {str(i): {'unlockingScript': bytes(s).hex()} for i, s in spends.items()}
        })
        result['tx'] = from_wire(result.get('tx'))
        return result

    def internalize_action(self, tx, basket, output_index=0, description='Internalize voicemail transaction'):
        '''take output `output_index` of AtomicBEEF `tx` into `basket`'''
        return self.call('internalizeAction', {
            'tx': to_wire(tx),
            'description': description,
            'outputs': [{
                'outputIndex': output_index,
                'protocol': 'basket insertion',
                'insertionRemittance': {'basket': basket}
            }]
        })
