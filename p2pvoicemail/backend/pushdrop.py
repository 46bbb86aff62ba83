# pushdrop.py
# PushDrop token codec: <pubkey> OP_CHECKSIG <field> ... OP_2DROP ... [OP_DROP]

import struct

from p2pvoicemail.backend.errors import MalformedToken

################################################################################

OP_0 = 0x00
OP_PUSHDATA1 = 0x4c
OP_PUSHDATA2 = 0x4d
OP_PUSHDATA4 = 0x4e
OP_1NEGATE = 0x4f
OP_1 = 0x51
OP_16 = 0x60
OP_DROP = 0x75
OP_2DROP = 0x6d
OP_CHECKSIG = 0xac

PUBKEY_SIZES = (33, 65)


class Token(object):
    '''
    a decoded PushDrop token

    'locking_key': public key the token is locked to
    'fields': ordered list of field bytes (clear or ciphertext, the codec does not care)
    '''

    def __init__(self, locking_key, fields):
        self.locking_key = bytes(locking_key)
        self.fields = [bytes(f) for f in fields]

    def __eq__(self, o):
        if not isinstance(o, Token):
            return False

        return self.locking_key == o.locking_key and self.fields == o.fields

    def __repr__(self):
        return f'Token(key={self.locking_key.hex()[:16]}..., fields={len(self.fields)})'

    def script(self):
        return lock(self.locking_key, self.fields)


################################################################################

def push(data):
    '''minimally encoded push of `data`'''
    data = bytes(data)
    n = len(data)

    if n == 0:
        return bytes([OP_0])
    if n == 1 and 1 <= data[0] <= 16:
        return bytes([OP_1 + data[0] - 1])
    if n == 1 and data[0] == 0x81:
        return bytes([OP_1NEGATE])
    if n <= 75:
        return bytes([n]) + data
    if n <= 0xff:
        return bytes([OP_PUSHDATA1, n]) + data
    if n <= 0xffff:
        return bytes([OP_PUSHDATA2]) + struct.pack('<H', n) + data

    return bytes([OP_PUSHDATA4]) + struct.pack('<I', n) + data


def chunks(script):
    '''
    split a script into (opcode, data) pairs.
    data is None for non-push opcodes.
    '''
    script = bytes(script)
    result = []
    i = 0

    while i < len(script):
        op = script[i]
        i += 1

        if 1 <= op <= 75:
            size = op
        elif op == OP_PUSHDATA1:
            size, i = _read_size(script, i, 1, '<B')
        elif op == OP_PUSHDATA2:
            size, i = _read_size(script, i, 2, '<H')
        elif op == OP_PUSHDATA4:
            size, i = _read_size(script, i, 4, '<I')
        else:
            result.append((op, None))
            continue

        if i + size > len(script):
            raise MalformedToken('push runs past the end of the script')

        result.append((op, script[i:i + size]))
        i += size

    return result


def _read_size(script, i, width, fmt):
    if i + width > len(script):
        raise MalformedToken('truncated push length')

    return struct.unpack(fmt, script[i:i + width])[0], i + width


def _field(op, data):
    if data is not None:
        return data
    if op == OP_0:
        return b''
    if OP_1 <= op <= OP_16:
        return bytes([op - OP_1 + 1])
    if op == OP_1NEGATE:
        return b'\x81'

    return None


################################################################################

def lock(locking_key, fields):
    '''build the locking script for `fields`, locked to `locking_key`'''
    locking_key = bytes(locking_key)
    if len(locking_key) not in PUBKEY_SIZES:
        raise ValueError(f'invalid locking key size {len(locking_key)}')
    if len(fields) == 0:
        raise ValueError('a token needs at least one field')

    script = bytearray(push(locking_key))
    script.append(OP_CHECKSIG)

    for f in fields:
        script += push(f)

    script += bytes([OP_2DROP]) * (len(fields) // 2)
    if len(fields) % 2:
        script.append(OP_DROP)

    return bytes(script)


def decode(script):
    '''
    parse a locking script back into a Token.

    @raise MalformedToken if the script is not a well-formed PushDrop token
    '''
    parts = chunks(script)

    if len(parts) < 4:
        raise MalformedToken('script too short for a token')

    op, locking_key = parts[0]
    if locking_key is None or len(locking_key) not in PUBKEY_SIZES:
        raise MalformedToken('script does not start with a public key')
    if parts[1] != (OP_CHECKSIG, None):
        raise MalformedToken('public key is not followed by OP_CHECKSIG')

    fields = []
    i = 2
    while i < len(parts):
        value = _field(*parts[i])
        if value is None:
            break
        fields.append(value)
        i += 1

    drops = parts[i:]
    expected = [(OP_2DROP, None)] * (len(fields) // 2)
    if len(fields) % 2:
        expected.append((OP_DROP, None))

    if not fields:
        raise MalformedToken('token carries no fields')
    if drops != expected:
        raise MalformedToken('fields are not dropped off the stack')

    token = Token(locking_key, fields)
    if token.script() != bytes(script):
        raise MalformedToken('fields are not minimally encoded')

    return token
