# beef.py
# Proof bundles as the wallet hands them out: BEEF (v1, v2), AtomicBEEF, or a
# bare raw transaction. Parsing is left to the bsv SDK.

from bsv import Transaction
from bsv.transaction.beef import parse_beef

################################################################################

BEEF_V1 = 4022206465
BEEF_V2 = 4022206466
ATOMIC_BEEF = 0x01010101

# prefix + subject txid
ATOMIC_HEADER_SIZE = 36


class Bundle(object):
    '''
    a parsed proof bundle

    'beef': the SDK's Beef
    'subject': txid an AtomicBEEF is about, None for a plain BEEF
    '''

    def __init__(self, beef, subject=None):
        self.beef = beef
        self.subject = subject

    def find_transaction(self, txid):
        '''Transaction for `txid`, or None if absent or txid-only'''
        entry = self.beef.find_transaction(txid)
        if entry is None:
            return None

        return entry.tx_obj


def version_of(raw):
    if len(raw) < 4:
        return None

    return int.from_bytes(raw[:4], 'little')


def split_atomic(raw):
    '''
    @return (subject txid or None, plain BEEF bytes)
    '''
    raw = bytes(raw)
    if version_of(raw) != ATOMIC_BEEF:
        return None, raw

    if len(raw) < ATOMIC_HEADER_SIZE:
        raise ValueError('AtomicBEEF is truncated')

    return raw[4:ATOMIC_HEADER_SIZE][::-1].hex(), raw[ATOMIC_HEADER_SIZE:]


def load_bundle(raw):
    '''
    parse a BEEF or AtomicBEEF

    @return Bundle
    @raise ValueError
    '''
    subject, raw = split_atomic(raw)
    if version_of(raw) not in (BEEF_V1, BEEF_V2):
        raise ValueError(f'not a BEEF: {raw[:4].hex()}')

    try:
        beef = parse_beef(raw)
    except Exception as e:
        raise ValueError(f'bad BEEF: {e.__class__.__name__}: {e}') from None

    bundle = Bundle(beef, subject)
    if subject is not None and bundle.find_transaction(subject) is None:
        raise ValueError(f'AtomicBEEF does not carry {subject}')

    return bundle


def load_transaction(raw):
    '''
    the subject Transaction of a signable/atomic payload, which may be a raw
    transaction, a BEEF (last transaction) or an AtomicBEEF
    '''
    raw = bytes(raw)
    version = version_of(raw)

    if version == ATOMIC_BEEF:
        bundle = load_bundle(raw)
        return bundle.find_transaction(bundle.subject)

    try:
        if version in (BEEF_V1, BEEF_V2):
            tx = Transaction.from_beef(raw)
        else:
            tx = Transaction.from_hex(raw)
    except Exception as e:
        raise ValueError(f'bad transaction: {e.__class__.__name__}: {e}') from None

    if tx is None:
        raise ValueError('bad transaction')

    return tx
