# crypto.py
# Field encryption through the wallet, with the (namespace, key id, counterparty)
# triple fixed per field.

import time

from Crypto.Hash import SHA256

from p2pvoicemail.backend import settings
from p2pvoicemail.backend.errors import DecryptionFailure, WalletError
from p2pvoicemail.backend.wallet import SELF


def now_ms():
    return int(time.time() * 1000)


def sha256(data):
    return SHA256.new(bytes(data)).digest()


def protect(wallet, namespace, key_id, counterparty, plaintext):
    '''encrypt `plaintext` under (namespace, key_id, counterparty)'''
    return wallet.encrypt(plaintext, namespace.protocol_id, key_id, counterparty)


def reveal(wallet, namespace, key_id, counterparty, ciphertext):
    '''
    decrypt `ciphertext`. any wallet refusal (wrong namespace, wrong
    counterparty, corrupted data) is a DecryptionFailure
    '''
    try:
        return wallet.decrypt(ciphertext, namespace.protocol_id, key_id, counterparty)
    except WalletError as e:
        raise DecryptionFailure(f'{namespace.name}: {e}') from None


def parse_timestamp(plaintext, now=None):
    '''
    decimal milliseconds -> int. unparsable values and values more than
    MAX_CLOCK_SKEW_MS in the future are replaced with `now`
    '''
    now = now_ms() if now is None else now

    try:
        timestamp = int(bytes(plaintext).decode('utf-8').strip())
    except (UnicodeDecodeError, ValueError):
        print(f'crypto.parse_timestamp: invalid timestamp {plaintext[:32]!r}')
        return now

    if timestamp > now + settings.MAX_CLOCK_SKEW_MS:
        print(f'crypto.parse_timestamp: timestamp {timestamp} is in the future')
        return now

    return timestamp


################################################################################

class FieldCipher(object):
    '''
    the crypto adapter for one token: every field goes through the same
    namespace, key id and counterparty
    '''

    def __init__(self, wallet, namespace, counterparty=SELF, key_id=settings.KEY_ID):
        self.wallet = wallet
        self.namespace = namespace
        self.counterparty = counterparty
        self.key_id = key_id

    def __repr__(self):
        return f'FieldCipher({self.namespace.name!r}, counterparty={self.counterparty[:12]!r})'

    def protect(self, plaintext):
        return protect(self.wallet, self.namespace, self.key_id, self.counterparty, plaintext)

    def reveal(self, ciphertext):
        return reveal(self.wallet, self.namespace, self.key_id, self.counterparty, ciphertext)

    def protect_text(self, text):
        return self.protect(text.encode('utf-8'))

    def reveal_text(self, ciphertext):
        plaintext = self.reveal(ciphertext)
        try:
            return plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionFailure(f'{self.namespace.name}: field is not text: {e}') from None

    def protect_timestamp(self, timestamp):
        return self.protect_text(str(int(timestamp)))

    def reveal_timestamp(self, ciphertext, now=None):
        '''never raises for bad content, only for failed decryption'''
        return parse_timestamp(self.reveal(ciphertext), now=now)

    def locking_key(self):
        '''public key tokens under this cipher are locked to'''
        return self.wallet.get_public_key(self.namespace.protocol_id, self.key_id, self.counterparty)
