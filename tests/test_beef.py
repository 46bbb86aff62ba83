import pytest

from bsv import Transaction

from fakes import make_tx, write_atomic_beef, write_beef
from p2pvoicemail.backend import beef
from p2pvoicemail.backend.beef import load_bundle, load_transaction

GENESIS_COINBASE = (
    '01000000010000000000000000000000000000000000000000000000000000000000000000ffffffff4d04ffff001d0104'
    '455468652054696d65732030332f4a616e2f32303039204368616e63656c6c6f72206f6e206272696e6b206f66207365'
    '636f6e64206261696c6f757420666f722062616e6b73ffffffff0100f2052a01000000434104678afdb0fe5548271967'
    'f1a67130b7105cd6a828e03909a67962e0ea1f61deb649f6bc3f4cef38c4f35504e51ec112de5c384df7ba0b8d578a4c'
    '702b6bf11d5fac00000000'
)
GENESIS_TXID = '4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b'


def tx_n(n=0):
    return make_tx([(1000 + n, b'\x76\xa9'), (1, b'\x6a')], inputs=[('ab' * 32, n)])


def test_raw_transaction():
    tx = load_transaction(bytes.fromhex(GENESIS_COINBASE))

    assert tx.txid() == GENESIS_TXID
    assert tx.outputs[0].satoshis == 50 * 10**8


def test_bundle_finds_every_transaction():
    a, b = tx_n(0), tx_n(1)
    bundle = load_bundle(write_beef([a, b]))

    assert bundle.subject is None
    assert bundle.find_transaction(b.txid()).txid() == b.txid()
    assert bundle.find_transaction(a.txid()).outputs[0].satoshis == 1000
    assert bundle.find_transaction('00' * 32) is None


def test_atomic_bundle_names_its_subject():
    parent, child = tx_n(0), tx_n(1)
    bundle = load_bundle(write_atomic_beef([parent, child], parent.txid()))

    assert bundle.subject == parent.txid()
    assert bundle.find_transaction(child.txid()) is not None


def test_atomic_bundle_must_carry_its_subject():
    with pytest.raises(ValueError):
        load_bundle(write_atomic_beef([tx_n(0)], tx_n(1).txid()))
    with pytest.raises(ValueError):
        load_bundle(write_atomic_beef([tx_n(0)], tx_n(0).txid())[:20])


@pytest.mark.parametrize('raw', [b'', b'\x00\x00\x00\x00\x00\x00', b'\xef\xbe\x00\xf0garbage'])
def test_not_a_bundle(raw):
    with pytest.raises(ValueError):
        load_bundle(raw)


def test_load_transaction_accepts_raw_and_atomic():
    tx = tx_n()

    assert load_transaction(tx.serialize()).txid() == tx.txid()
    assert load_transaction(write_atomic_beef([tx, tx_n(5)], tx.txid())).txid() == tx.txid()


def test_load_transaction_rejects_garbage():
    with pytest.raises(ValueError):
        load_transaction(b'\x01\x02\x03')


def test_signature_preimage_commits_to_the_spent_output():
    tx = load_transaction(tx_n().serialize())
    txin = tx.inputs[0]
    txin.satoshis = 100
    txin.locking_script = make_tx([(100, b'\x51')]).outputs[0].locking_script

    before = tx.preimage(0)
    txin.satoshis = 101
    assert tx.preimage(0) != before
    assert before[-4:] == b'\x41\x00\x00\x00'


def test_sdk_reads_what_the_fakes_write():
    tx = tx_n(3)
    assert Transaction.from_hex(tx.hex()).txid() == tx.txid()
    assert beef.version_of(write_beef([tx])) == beef.BEEF_V1
