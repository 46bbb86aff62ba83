# baskets.py
# Which basket a new output goes into, and which baskets make up a view.

from p2pvoicemail.backend import namespaces
from p2pvoicemail.backend.errors import UnknownView

################################################################################

INBOX = 'inbox'
SENT = 'sent'
ARCHIVED = 'archived'
CONTACTS = 'contacts'
TASKS = 'tasks'

VIEWS = (INBOX, SENT, ARCHIVED, CONTACTS, TASKS)

# view -> purposes whose baskets are scanned for it
_VIEW_PURPOSES = {
    INBOX: (namespaces.VOICEMAIL_TO_SELF, namespaces.VOICEMAIL_TO_PEER),
    SENT: (namespaces.VOICEMAIL_SENT_COPY,),
    ARCHIVED: (namespaces.VOICEMAIL_ARCHIVED_COPY,),
    CONTACTS: (namespaces.CONTACT,),
    TASKS: (namespaces.TASK,),
}


def insertion_basket_for(purpose):
    return namespaces.namespace_for(purpose).default_basket


def purposes_for(view):
    '''purposes scanned for `view`, in scan order'''
    try:
        return _VIEW_PURPOSES[view]
    except KeyError:
        raise UnknownView(view) from None


def baskets_to_scan(view):
    return frozenset(insertion_basket_for(p) for p in purposes_for(view))


def purpose_of_basket(basket):
    '''the purpose whose tokens live in `basket`'''
    for purpose in namespaces.purposes():
        if insertion_basket_for(purpose) == basket:
            return purpose

    raise UnknownView(basket)
