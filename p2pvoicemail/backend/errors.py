# errors.py


class VoicemailError(Exception):
    '''base class for everything the core raises on purpose'''


class MalformedToken(VoicemailError):
    '''locking script does not match the expected token shape'''


class DecryptionFailure(VoicemailError):
    '''wrong namespace/counterparty or corrupted ciphertext'''


class TransactionNotFound(VoicemailError):
    '''outpoint is not in the proof bundle of the basket it should live in'''

    def __init__(self, outpoint, baskets=()):
        self.outpoint = outpoint
        self.baskets = tuple(baskets)

        where = ', '.join(f'"{b}"' for b in self.baskets) or 'any basket'
        super().__init__(f'Transaction {outpoint} not found in {where}. '
                         'Please refresh and try again.')


class SpendConstructionFailure(VoicemailError):
    '''wallet could not build the (unsigned) action'''


class SigningFailure(VoicemailError):
    '''unlocking or finalizing a spend failed, the token is still unspent'''


class NotificationDeliveryFailure(VoicemailError):
    '''relay did not take the notification. never fatal'''


class WalletError(VoicemailError):
    '''wallet service returned an error or could not be reached'''

    def __init__(self, method, message, code=None):
        self.method = method
        self.code = code
        super().__init__(f'{method}: {message}')


class RelayError(VoicemailError):
    '''message relay returned an error or could not be reached'''


class UnknownPurpose(KeyError):
    '''purpose missing from the namespace table'''


class UnknownView(KeyError):
    '''view name not known to the basket classifier'''
