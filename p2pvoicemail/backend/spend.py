# spend.py
# Two-phase spend: (a) build unsigned, (b) unlock, (c) sign and finalize.

from bsv import Script
from bsv.constants import SIGHASH

from p2pvoicemail.backend import beef, pushdrop, settings
from p2pvoicemail.backend.crypto import sha256
from p2pvoicemail.backend.errors import SigningFailure, SpendConstructionFailure, WalletError

################################################################################

# DER signature (<= 72) plus the sighash byte
UNLOCKING_SCRIPT_LENGTH = 73


def unlocking_script(wallet, intent, tx, index):
    '''
    rebuild the unlocking script for input `index` of `tx`, signing with the
    same namespace/key id/counterparty the token was locked with
    '''
    txin = tx.inputs[index]
    txin.satoshis = intent.satoshis
    txin.locking_script = Script(intent.locking_script)
    txin.sighash = SIGHASH.ALL_FORKID

    signature = wallet.create_signature(
        sha256(tx.preimage(index)), intent.namespace.protocol_id, intent.key_id, intent.counterparty)

    return pushdrop.push(signature + bytes([SIGHASH.ALL_FORKID.value]))


def _input_index(tx, outpoint):
    for i, txin in enumerate(tx.inputs):
        if txin.source_txid == outpoint.txid and txin.source_output_index == outpoint.index:
            return i

    raise SigningFailure(f'unsigned transaction does not spend {outpoint}')


def construct(wallet, intent, timeout=settings.SPEND_CONSTRUCTION_TIMEOUT):
    '''phase (a). @return the wallet's signableTransaction {tx, reference}'''
    try:
        result = wallet.create_action(
            intent.description,
            outputs=intent.outputs,
            inputs=[{
                'outpoint': str(intent.outpoint),
                'inputDescription': intent.description,
                'unlockingScriptLength': UNLOCKING_SCRIPT_LENGTH
            }],
            input_beef=intent.beef,
            timeout=timeout
        )
    except WalletError as e:
        raise SpendConstructionFailure(f'{intent.outpoint}: {e}') from None

    signable = result.get('signableTransaction')
    if not signable or not signable.get('tx') or not signable.get('reference'):
        raise SpendConstructionFailure(f'{intent.outpoint}: failed to create signable transaction')

    return signable


def spend(wallet, intent, timeout=settings.SPEND_CONSTRUCTION_TIMEOUT):
    '''
    consume `intent.outpoint`, creating `intent.outputs` in the same transaction.

    nothing counts as spent unless phase (c) returns a txid. any failure
    leaves the token as it was, and the whole thing may be retried.

    @return txid of the final transaction
    @raise SpendConstructionFailure, SigningFailure
    '''
    signable = construct(wallet, intent, timeout=timeout)

    # (b)
    try:
        tx = beef.load_transaction(signable['tx'])
        index = _input_index(tx, intent.outpoint)
        script = unlocking_script(wallet, intent, tx, index)
    except (ValueError, IndexError, WalletError) as e:
        raise SigningFailure(f'{intent.outpoint}: could not unlock: {e.__class__.__name__}: {e}') from None

    # (c)
    try:
        result = wallet.sign_action(signable['reference'], {index: script})
    except WalletError as e:
        raise SigningFailure(f'{intent.outpoint}: {e}') from None

    if not result.get('txid'):
        raise SigningFailure(f'{intent.outpoint}: transaction ID is missing')

    return result['txid']
