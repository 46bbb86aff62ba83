import pytest

from p2pvoicemail.backend import pushdrop
from p2pvoicemail.backend.errors import MalformedToken

KEY = b'\x02' + b'\x11' * 32


def test_push_is_minimal():
    assert pushdrop.push(b'') == b'\x00'
    assert pushdrop.push(b'\x05') == bytes([pushdrop.OP_1 + 4])
    assert pushdrop.push(b'\x81') == bytes([pushdrop.OP_1NEGATE])
    assert pushdrop.push(b'\x00') == b'\x01\x00'
    assert pushdrop.push(b'a' * 75)[:1] == bytes([75])
    assert pushdrop.push(b'a' * 76)[:2] == bytes([pushdrop.OP_PUSHDATA1, 76])
    assert pushdrop.push(b'a' * 256)[:3] == bytes([pushdrop.OP_PUSHDATA2, 0x00, 0x01])


@pytest.mark.parametrize('fields', [
    [b'sender', b'audio', b'1700000000000'],
    [b'sender', b'audio' * 100, b'ts', b'note'],
    [b'\x07'],
    [b'x' * 70000, b'\x81', b'\x10'],
])
def test_lock_then_decode(fields):
    script = pushdrop.lock(KEY, fields)
    token = pushdrop.decode(script)

    assert token.locking_key == KEY
    assert token.fields == fields
    assert token.script() == script


def test_drops_match_field_count():
    odd = pushdrop.lock(KEY, [b'a', b'b', b'c'])
    even = pushdrop.lock(KEY, [b'a', b'b', b'c', b'd'])

    assert odd.endswith(bytes([pushdrop.OP_2DROP, pushdrop.OP_DROP]))
    assert even.endswith(bytes([pushdrop.OP_2DROP, pushdrop.OP_2DROP]))


def test_empty_field_decodes_to_empty_bytes():
    token = pushdrop.decode(pushdrop.lock(KEY, [b'sender', b'']))
    assert token.fields == [b'sender', b'']


def test_lock_rejects_bad_input():
    with pytest.raises(ValueError):
        pushdrop.lock(b'\x02' * 20, [b'a'])
    with pytest.raises(ValueError):
        pushdrop.lock(KEY, [])


def test_decode_rejects_missing_checksig():
    script = pushdrop.push(KEY) + pushdrop.push(b'field') + bytes([pushdrop.OP_DROP]) + b'\x51'
    with pytest.raises(MalformedToken):
        pushdrop.decode(script)


def test_decode_rejects_wrong_drops():
    script = pushdrop.lock(KEY, [b'a', b'b'])
    with pytest.raises(MalformedToken):
        pushdrop.decode(script[:-1] + bytes([pushdrop.OP_DROP, pushdrop.OP_DROP]))


def test_decode_rejects_non_minimal_push():
    # 0x05 pushed as data instead of OP_5
    script = pushdrop.push(KEY) + bytes([pushdrop.OP_CHECKSIG, 0x01, 0x05, pushdrop.OP_DROP])
    with pytest.raises(MalformedToken):
        pushdrop.decode(script)


def test_decode_rejects_truncated_script():
    script = pushdrop.lock(KEY, [b'a' * 40])
    with pytest.raises(MalformedToken):
        pushdrop.decode(script[:30])
