# records.py
# Typed records rebuilt from tokens, and the value objects passed between layers.

import base64
import re

from p2pvoicemail.backend import settings

################################################################################

_OUTPOINT = re.compile(r'^([0-9a-f]{64})\.(\d+)$')
_IDENTITY_KEY = re.compile(r'^0[23][0-9a-f]{64}$')


def is_identity_key(key):
    return isinstance(key, str) and _IDENTITY_KEY.match(key) is not None


class Outpoint(object):
    '''`txid`.`index`'''

    def __init__(self, txid, index=0):
        self.txid = txid
        self.index = int(index)

    def __eq__(self, o):
        if not isinstance(o, Outpoint):
            return False

        return self.txid == o.txid and self.index == o.index

    def __hash__(self):
        return hash((self.txid, self.index))

    def __str__(self):
        return f'{self.txid}.{self.index}'

    def __repr__(self):
        return f'Outpoint({self})'

    @staticmethod
    def parse(text):
        if isinstance(text, Outpoint):
            return text

        m = _OUTPOINT.match(str(text).strip().lower())
        if m is None:
            raise ValueError(f'invalid outpoint {text!r}')

        return Outpoint(m.group(1), int(m.group(2)))


################################################################################

class VoicemailRecord(object):
    '''
    a voicemail rebuilt from a token

    'outpoint': Outpoint of the token
    'identity': sender identity key (inbox/archived) or recipient (sent)
    'timestamp': ms since epoch
    'satoshis': value locked in the token
    'note': text note, '' when there is none
    'audio': audio bytes
    'locking_script': bytes, needed to spend the token
    'purpose': purpose (namespaces.*) the token was decoded under
    'counterparty': counterparty that unlocks the token
    '''

    def __init__(self, outpoint, identity, timestamp, satoshis, audio, locking_script,
                 purpose, counterparty, note=''):
        self.outpoint = outpoint
        self.identity = identity
        self.timestamp = timestamp
        self.satoshis = satoshis
        self.note = note or ''
        self.audio = audio
        self.locking_script = locking_script
        self.purpose = purpose
        self.counterparty = counterparty

    def __eq__(self, o):
        if not isinstance(o, VoicemailRecord):
            return False

        return self.dict() == o.dict()

    def __repr__(self):
        return f'VoicemailRecord({self.outpoint}, {self.satoshis} sats, note={self.note!r})'

    @property
    def sender(self):
        return self.identity

    def dict(self):
        return dict(
            outpoint=str(self.outpoint),
            identity=self.identity,
            timestamp=self.timestamp,
            satoshis=self.satoshis,
            note=self.note,
            audio=base64.b64encode(self.audio).decode(),
            locking_script=self.locking_script.hex(),
            purpose=self.purpose
        )


class ContactRecord(object):
    '''
    'outpoint': Outpoint of the contact token
    'name': display name
    'identity_key': counterparty identity key
    'timestamp': creation time, ms since epoch
    'locking_script': bytes
    '''

    def __init__(self, outpoint, name, identity_key, timestamp, locking_script, satoshis=settings.COPY_SATOSHIS):
        self.outpoint = outpoint
        self.name = name
        self.identity_key = identity_key
        self.timestamp = timestamp
        self.locking_script = locking_script
        self.satoshis = satoshis

    def __eq__(self, o):
        if not isinstance(o, ContactRecord):
            return False

        return self.dict() == o.dict()

    def __repr__(self):
        return f'ContactRecord({self.outpoint}, {self.name!r})'

    def dict(self):
        return dict(
            outpoint=str(self.outpoint),
            name=self.name,
            identity_key=self.identity_key,
            timestamp=self.timestamp,
            satoshis=self.satoshis,
            locking_script=self.locking_script.hex()
        )


class TaskRecord(object):
    '''
    'outpoint': Outpoint of the task token
    'description': what needs doing
    'satoshis': bounty locked in the token
    'locking_script': bytes
    '''

    def __init__(self, outpoint, description, satoshis, locking_script):
        self.outpoint = outpoint
        self.description = description
        self.satoshis = satoshis
        self.locking_script = locking_script

    def __eq__(self, o):
        if not isinstance(o, TaskRecord):
            return False

        return self.dict() == o.dict()

    def __repr__(self):
        return f'TaskRecord({self.outpoint}, {self.description!r})'

    def dict(self):
        return dict(
            outpoint=str(self.outpoint),
            description=self.description,
            satoshis=self.satoshis,
            locking_script=self.locking_script.hex()
        )


################################################################################

class VoicemailIntent(object):
    '''
    what the user wants sent

    'recipient': identity key of the peer, or 'self'
    'audio': audio bytes
    'satoshis': value to attach
    'note': optional text
    'save_copy': also keep an encrypted copy in the sent basket
    '''

    def __init__(self, recipient, audio, satoshis=1, note='', save_copy=True):
        self.recipient = recipient
        self.audio = bytes(audio)
        self.satoshis = satoshis
        self.note = (note or '').strip()
        self.save_copy = save_copy

    def validate(self, own_identity):
        if not self.audio:
            raise ValueError('voicemail has no audio')
        if isinstance(self.satoshis, bool) or not isinstance(self.satoshis, int):
            raise ValueError(f'satoshis must be an integer, got {self.satoshis!r}')
        if not settings.MIN_SATOSHIS <= self.satoshis <= settings.MAX_SATOSHIS:
            raise ValueError(f'satoshis must be between {settings.MIN_SATOSHIS} and {settings.MAX_SATOSHIS}')
        if not self.to_self(own_identity) and not is_identity_key(self.recipient):
            raise ValueError(f'invalid recipient {self.recipient!r}')

    def to_self(self, own_identity):
        return self.recipient in ('self', own_identity)


class SpendIntent(object):
    '''
    one token spend, alive for a single lifecycle transition

    'outpoint': Outpoint to consume
    'locking_script': script of that output
    'satoshis': its value
    'namespace', 'key_id', 'counterparty': what unlocks it
    'beef': proof bundle carrying the output's transaction
    'outputs': new outputs created atomically with the spend
    'description': wallet-visible description
    '''

    def __init__(self, outpoint, locking_script, satoshis, namespace, counterparty, beef,
                 outputs=None, description='Spend token', key_id=settings.KEY_ID):
        self.outpoint = outpoint
        self.locking_script = locking_script
        self.satoshis = satoshis
        self.namespace = namespace
        self.counterparty = counterparty
        self.key_id = key_id
        self.beef = beef
        self.outputs = outputs or []
        self.description = description

    def __repr__(self):
        return f'SpendIntent({self.outpoint}, {self.namespace.name!r}, outputs={len(self.outputs)})'
