# reconstruct.py
# Basket outputs + proof bundle -> typed records. One bad output never sinks the batch.

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from p2pvoicemail.backend import baskets, beef, namespaces, pushdrop, settings
from p2pvoicemail.backend.crypto import FieldCipher, now_ms
from p2pvoicemail.backend.errors import DecryptionFailure, MalformedToken, TransactionNotFound
from p2pvoicemail.backend.records import (ContactRecord, Outpoint, TaskRecord, VoicemailRecord,
                                          is_identity_key)
from p2pvoicemail.backend.wallet import SELF

################################################################################

# a located token output, script as raw bytes
TokenOutput = namedtuple('TokenOutput', ['satoshis', 'locking_script'])


def load_bundle(raw):
    '''parse a basket's BEEF, None if there is none'''
    if not raw:
        return None

    return beef.load_bundle(raw)


def locate(bundle, outpoint, basket=None):
    '''
    the output `outpoint` points at, out of `bundle`

    @return TokenOutput
    @raise TransactionNotFound
    '''
    tx = bundle.find_transaction(outpoint.txid) if bundle is not None else None
    if tx is None or outpoint.index >= len(tx.outputs):
        raise TransactionNotFound(outpoint, [basket] if basket else [])

    txout = tx.outputs[outpoint.index]
    return TokenOutput(txout.satoshis, txout.locking_script.serialize())


def decode_token(purpose, locking_script):
    '''
    decode a locking script under the schema of `purpose`

    @return (Token, slots dict)
    @raise MalformedToken
    '''
    namespace = namespaces.namespace_for(purpose)
    token = pushdrop.decode(locking_script)
    return token, namespace.fit(token.fields)


def clear_sender(slots):
    '''the routing identity carried in the clear by inbox tokens'''
    try:
        sender = slots['sender'].decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedToken('sender field is not text') from None

    if not is_identity_key(sender):
        raise MalformedToken(f'sender field is not an identity key: {sender[:20]!r}')

    return sender


def unlocking_counterparty(purpose, slots):
    '''
    who a token was locked against. value sent by a peer is unlocked with the
    sender's key, everything else with self
    '''
    if purpose == namespaces.VOICEMAIL_TO_PEER:
        return clear_sender(slots)

    return SELF


class Pipeline(object):
    '''
    rebuilds the records of a view from the wallet's baskets.

    'wallet': wallet client
    'workers': max concurrent decrypts per basket
    '''

    def __init__(self, wallet, workers=settings.RECONSTRUCT_WORKERS, clock=now_ms):
        self.wallet = wallet
        self.workers = workers
        self.clock = clock


    def refresh(self, view):
        '''
        every record of `view`, in basket scan order.
        failed records are None, so len(result) == number of outputs
        '''
        records = []
        for purpose in baskets.purposes_for(view):
            records.extend(self.scan(baskets.insertion_basket_for(purpose)))

        return records

    def scan(self, basket):
        purpose = baskets.purpose_of_basket(basket)
        listing = self.wallet.list_outputs(basket, include_beef=True)
        outputs = listing['outputs']

        try:
            bundle = load_bundle(listing['BEEF'])
        except ValueError as e:
            print(f'Pipeline.scan: "{basket}": bad proof bundle: {e}')
            return [None] * len(outputs)

        if not outputs:
            return []

        with ThreadPoolExecutor(max_workers=min(self.workers, len(outputs))) as pool:
            return list(pool.map(lambda output: self.rebuild_or_none(purpose, basket, output, bundle), outputs))


    def rebuild_or_none(self, purpose, basket, output, bundle):
        '''record boundary: nothing escapes from here'''
        try:
            return self.rebuild(purpose, basket, output, bundle)
        except Exception as e:
            print(f'Pipeline.rebuild: {output.get("outpoint")}: {e.__class__.__name__}: {e}')
            return None

    def rebuild(self, purpose, basket, output, bundle):
        outpoint = Outpoint.parse(output['outpoint'])
        txout = locate(bundle, outpoint, basket)
        token, slots = decode_token(purpose, txout.locking_script)

        if purpose in (namespaces.VOICEMAIL_TO_PEER, namespaces.VOICEMAIL_TO_SELF,
                       namespaces.VOICEMAIL_SENT_COPY, namespaces.VOICEMAIL_ARCHIVED_COPY):
            return self.voicemail(purpose, outpoint, txout, slots)
        if purpose == namespaces.CONTACT:
            return self.contact(outpoint, txout, slots)

        return self.task(outpoint, txout, slots)


    def voicemail(self, purpose, outpoint, txout, slots):
        namespace = namespaces.namespace_for(purpose)
        counterparty = unlocking_counterparty(purpose, slots)
        cipher = FieldCipher(self.wallet, namespace, counterparty)

        # inbox tokens carry the sender in the clear for routing, copies
        # carry an encrypted identity (sender for archived, recipient for sent)
        if purpose in (namespaces.VOICEMAIL_TO_PEER, namespaces.VOICEMAIL_TO_SELF):
            identity = clear_sender(slots)
        else:
            identity = cipher.reveal_text(slots['identity'])

        audio = cipher.reveal(slots['audio'])
        if not audio:
            raise DecryptionFailure('empty audio')

        try:
            timestamp = cipher.reveal_timestamp(slots['timestamp'], now=self.clock())
        except DecryptionFailure as e:
            print(f'Pipeline.voicemail: {outpoint}: timestamp: {e}')
            timestamp = self.clock()

        note = ''
        if slots['note']:
            try:
                note = cipher.reveal_text(slots['note'])
            except DecryptionFailure as e:
                print(f'Pipeline.voicemail: {outpoint}: note: {e}')

        return VoicemailRecord(
            outpoint=outpoint,
            identity=identity,
            timestamp=timestamp,
            satoshis=txout.satoshis,
            audio=audio,
            locking_script=txout.locking_script,
            purpose=purpose,
            counterparty=counterparty,
            note=note
        )

    def contact(self, outpoint, txout, slots):
        cipher = FieldCipher(self.wallet, namespaces.namespace_for(namespaces.CONTACT))

        identity_key = cipher.reveal_text(slots['identity_key'])
        if not is_identity_key(identity_key):
            raise MalformedToken(f'contact identity key is invalid: {identity_key[:20]!r}')

        return ContactRecord(
            outpoint=outpoint,
            name=cipher.reveal_text(slots['name']),
            identity_key=identity_key,
            timestamp=cipher.reveal_timestamp(slots['timestamp'], now=self.clock()),
            locking_script=txout.locking_script,
            satoshis=txout.satoshis
        )

    def task(self, outpoint, txout, slots):
        cipher = FieldCipher(self.wallet, namespaces.namespace_for(namespaces.TASK))

        return TaskRecord(
            outpoint=outpoint,
            description=cipher.reveal_text(slots['task']),
            satoshis=txout.satoshis,
            locking_script=txout.locking_script
        )
