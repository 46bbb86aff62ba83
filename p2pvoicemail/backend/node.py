# node.py
# The engine this process serves. Built from settings on first use.

from threading import RLock

from p2pvoicemail.backend import settings
from p2pvoicemail.backend.lifecycle import Engine
from p2pvoicemail.backend.relay import RelayClient
from p2pvoicemail.backend.wallet import WalletClient

################################################################################

# Lock this before swapping the engine
lock = RLock()

engine = None


def get_engine():
    global engine

    with lock:
        if engine is None:
            engine = Engine(
                WalletClient(settings.WALLET_URL),
                RelayClient(settings.RELAY_URL) if settings.RELAY_URL else None
            )

        return engine


def set_engine(new_engine):
    '''replace the engine, e.g. with one talking to a different wallet'''
    global engine

    with lock:
        engine = new_engine
