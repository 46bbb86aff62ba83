import pytest

from fakes import NOW, FakeWallet, identity_of
from p2pvoicemail.backend import namespaces, settings
from p2pvoicemail.backend.crypto import FieldCipher, parse_timestamp
from p2pvoicemail.backend.errors import DecryptionFailure


def test_parse_timestamp():
    assert parse_timestamp(b'1699999999999', now=NOW) == 1699999999999
    assert parse_timestamp(b' 42 ', now=NOW) == 42


def test_timestamp_in_the_future_is_clamped():
    assert parse_timestamp(str(NOW + settings.MAX_CLOCK_SKEW_MS).encode(), now=NOW) == NOW + settings.MAX_CLOCK_SKEW_MS
    assert parse_timestamp(str(NOW + settings.MAX_CLOCK_SKEW_MS + 1).encode(), now=NOW) == NOW


@pytest.mark.parametrize('plaintext', [b'yesterday', b'', b'\xff\xfe', b'12.5'])
def test_garbage_timestamp_is_now(plaintext):
    assert parse_timestamp(plaintext, now=NOW) == NOW


def test_field_cipher_text_and_timestamp():
    cipher = FieldCipher(FakeWallet('alice'), namespaces.namespace_for(namespaces.CONTACT))

    assert cipher.reveal_text(cipher.protect_text('Bob')) == 'Bob'
    assert cipher.reveal_timestamp(cipher.protect_timestamp(NOW), now=NOW) == NOW


def test_wrong_namespace_fails_closed():
    wallet = FakeWallet('alice')
    sent = FieldCipher(wallet, namespaces.namespace_for(namespaces.VOICEMAIL_SENT_COPY))
    archived = FieldCipher(wallet, namespaces.namespace_for(namespaces.VOICEMAIL_ARCHIVED_COPY))

    with pytest.raises(DecryptionFailure):
        archived.reveal(sent.protect(b'audio'))


def test_peers_share_a_key_and_nobody_else_does(ledger):
    alice, bob, carol = FakeWallet('alice', ledger), FakeWallet('bob', ledger), FakeWallet('carol', ledger)
    ns = namespaces.namespace_for(namespaces.VOICEMAIL_TO_PEER)

    ciphertext = FieldCipher(alice, ns, identity_of('bob')).protect(b'hello')

    assert FieldCipher(bob, ns, identity_of('alice')).reveal(ciphertext) == b'hello'
    with pytest.raises(DecryptionFailure):
        FieldCipher(bob, ns).reveal(ciphertext)
    with pytest.raises(DecryptionFailure):
        FieldCipher(carol, ns, identity_of('alice')).reveal(ciphertext)


def test_non_text_field():
    cipher = FieldCipher(FakeWallet('alice'), namespaces.namespace_for(namespaces.CONTACT))
    with pytest.raises(DecryptionFailure):
        cipher.reveal_text(cipher.protect(b'\xff\xfe'))
