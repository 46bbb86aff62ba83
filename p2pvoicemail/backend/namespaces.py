# namespaces.py
# Fixed table of encryption namespaces. Nothing else may invent protocol strings.

from p2pvoicemail.backend import settings
from p2pvoicemail.backend.errors import MalformedToken, UnknownPurpose

################################################################################

# purposes
VOICEMAIL_TO_PEER = 'voicemail-outbound-to-peer'
VOICEMAIL_TO_SELF = 'voicemail-outbound-to-self'
VOICEMAIL_SENT_COPY = 'voicemail-sent-copy'
VOICEMAIL_ARCHIVED_COPY = 'voicemail-archived-copy'
CONTACT = 'contact'
TASK = 'task'


class Slot(object):
    '''
    one position in a token's field list

    'name': field name used by the records
    'encrypted': whether the field is ciphertext
    'optional': trailing field that may be absent
    'constant': clear-text value the field must carry, if any
    '''

    def __init__(self, name, encrypted=True, optional=False, constant=None):
        self.name = name
        self.encrypted = encrypted
        self.optional = optional
        self.constant = constant

    def __repr__(self):
        return f'Slot({self.name!r}, encrypted={self.encrypted}, optional={self.optional})'


class Namespace(object):
    '''
    'name': protocol string used for key derivation
    'security_level': wallet security level
    'default_basket': basket new outputs are inserted into
    'schema': ordered tuple of Slot
    '''

    def __init__(self, name, default_basket, schema, security_level=settings.SECURITY_LEVEL):
        self.name = name
        self.default_basket = default_basket
        self.schema = tuple(schema)
        self.security_level = security_level

    def __eq__(self, o):
        if not isinstance(o, Namespace):
            return False

        return (self.name == o.name
            and self.default_basket == o.default_basket
            and self.security_level == o.security_level)

    def __hash__(self):
        return hash((self.name, self.default_basket, self.security_level))

    def __repr__(self):
        return f'Namespace({self.name!r}, basket={self.default_basket!r})'

    @property
    def protocol_id(self):
        '''wallet wire form: [security level, protocol string]'''
        return [self.security_level, self.name]

    @property
    def min_fields(self):
        return len([s for s in self.schema if not s.optional])

    @property
    def max_fields(self):
        return len(self.schema)

    def fit(self, fields):
        '''
        map a decoded field list onto the slot schema.

        @return dict slot name -> bytes, absent optional slots map to None
        @raise MalformedToken if the list does not fit the schema
        '''
        if not self.min_fields <= len(fields) <= self.max_fields:
            raise MalformedToken(
                f'{self.name}: expected {self.min_fields}..{self.max_fields} fields, got {len(fields)}')

        slots = {}
        for i, slot in enumerate(self.schema):
            value = fields[i] if i < len(fields) else None

            if slot.constant is not None and value != slot.constant:
                raise MalformedToken(f'{self.name}: field {slot.name} does not carry the protocol marker')
            if value is not None and not slot.optional and len(value) == 0:
                raise MalformedToken(f'{self.name}: field {slot.name} is empty')

            slots[slot.name] = value

        return slots

    def arrange(self, slots):
        '''inverse of fit(): ordered field list, trailing absent optionals dropped'''
        fields = []
        for slot in self.schema:
            value = slots.get(slot.name)
            if value is None:
                if not slot.optional:
                    raise ValueError(f'{self.name}: missing field {slot.name}')
                break
            fields.append(value)

        return fields


################################################################################

_VOICEMAIL = (
    Slot('sender', encrypted=False),
    Slot('audio'),
    Slot('timestamp'),
    Slot('note', optional=True),
)

_VOICEMAIL_COPY = (
    Slot('identity'),
    Slot('audio'),
    Slot('timestamp'),
    Slot('note', optional=True),
)

_CONTACT = (
    Slot('name'),
    Slot('identity_key'),
    Slot('timestamp'),
)

_TASK = (
    Slot('protocol_address', encrypted=False, constant=settings.TODO_PROTO_ADDR.encode()),
    Slot('task'),
)

REGISTRY = {
    VOICEMAIL_TO_PEER: Namespace('p2p voicemail rebuild', 'internalize to new basket', _VOICEMAIL),
    VOICEMAIL_TO_SELF: Namespace('p2p voicemail rebuild', 'p2p voicemail to self', _VOICEMAIL),
    VOICEMAIL_SENT_COPY: Namespace('p2p voicemail rebuild sent', 'p2p voicemail rebuild sent', _VOICEMAIL_COPY),
    VOICEMAIL_ARCHIVED_COPY: Namespace('p2p voicemail rebuild archived', 'p2p voicemail rebuild archived', _VOICEMAIL_COPY),
    CONTACT: Namespace('p2p voicemail contacts', 'p2p voicemail contacts', _CONTACT),
    TASK: Namespace('todo list', 'voicemail todo list', _TASK),
}


def namespace_for(purpose):
    '''pure lookup, an unknown purpose is a programming error'''
    try:
        return REGISTRY[purpose]
    except KeyError:
        raise UnknownPurpose(purpose) from None


def purposes():
    return list(REGISTRY)
