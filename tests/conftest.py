# conftest.py
# Put the repository root on sys.path so the tests import the package the
# same way manage.py does, and configure Django for the view tests.

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'p2pvoicemail.settings')

from fakes import NOW, FakeRelay, FakeWallet, Ledger  # noqa: E402
from p2pvoicemail.backend.lifecycle import Engine  # noqa: E402


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def relay():
    return FakeRelay()


@pytest.fixture
def alice_wallet(ledger):
    return FakeWallet('alice', ledger)


@pytest.fixture
def bob_wallet(ledger):
    return FakeWallet('bob', ledger)


@pytest.fixture
def alice(alice_wallet, relay):
    return Engine(alice_wallet, relay.as_user(alice_wallet.identity_key()), clock=lambda: NOW)


@pytest.fixture
def bob(bob_wallet, relay):
    return Engine(bob_wallet, relay.as_user(bob_wallet.identity_key()), clock=lambda: NOW)
