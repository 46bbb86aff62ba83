import json

import pytest
import requests

from p2pvoicemail.backend.errors import RelayError, WalletError
from p2pvoicemail.backend.relay import RelayClient
from p2pvoicemail.backend.wallet import WalletClient


class Response(object):

    def __init__(self, status_code=200, data=None, text=''):
        self.status_code = status_code
        self.data = data
        self.text = text or json.dumps(data)

    def json(self):
        if self.data is None:
            raise ValueError('no json')
        return self.data


class Session(object):
    '''records every post and answers from `replies`'''

    def __init__(self, *replies):
        self.replies = list(replies)
        self.posts = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({'url': url, 'json': json, 'headers': headers, 'timeout': timeout})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_wallet_call_shape():
    session = Session(Response(data={'ciphertext': [1, 2, 3]}))
    wallet = WalletClient('http://wallet/', originator='tests', timeout=5, session=session)

    assert wallet.encrypt(b'\x09', [0, 'todo list'], '1', 'self') == b'\x01\x02\x03'

    post = session.posts[0]
    assert post['url'] == 'http://wallet/encrypt'
    assert post['json'] == {'plaintext': [9], 'protocolID': [0, 'todo list'], 'keyID': '1', 'counterparty': 'self'}
    assert post['headers']['Originator'] == 'tests'
    assert post['timeout'] == 5


def test_identity_key_is_cached():
    session = Session(Response(data={'publicKey': '02' + 'ab' * 32}))
    wallet = WalletClient('http://wallet', session=session)

    assert wallet.identity_key() == wallet.identity_key() == '02' + 'ab' * 32
    assert len(session.posts) == 1


def test_wallet_errors():
    wallet = WalletClient('http://wallet', session=Session(
        Response(400, {'message': 'no such key', 'code': 'ERR_KEY'}),
        requests.exceptions.Timeout(),
        Response(500, None, 'boom'),
    ))

    with pytest.raises(WalletError) as e:
        wallet.decrypt(b'x', [0, 'p'], '1')
    assert e.value.code == 'ERR_KEY'
    assert 'no such key' in str(e.value)

    with pytest.raises(WalletError, match='timed out'):
        wallet.decrypt(b'x', [0, 'p'], '1')

    with pytest.raises(WalletError, match='boom'):
        wallet.decrypt(b'x', [0, 'p'], '1')


def test_create_action_spend():
    session = Session(Response(data={'signableTransaction': {'tx': [1, 2], 'reference': 'r1'}}))
    wallet = WalletClient('http://wallet', session=session)

    result = wallet.create_action('Redeem', outputs=[], inputs=[{'outpoint': 'ab.0'}], input_beef=b'\x05', timeout=30)

    assert result['signableTransaction']['tx'] == b'\x01\x02'
    args = session.posts[0]['json']
    assert args['inputBEEF'] == [5]
    assert args['options'] == {'randomizeOutputs': False, 'acceptDelayedBroadcast': False}
    assert session.posts[0]['timeout'] == 30


def test_sign_action_spends():
    session = Session(Response(data={'txid': 'ff' * 32}))
    WalletClient('http://wallet', session=session).sign_action('r1', {0: b'\x01\x02'})

    assert session.posts[0]['json']['spends'] == {'0': {'unlockingScript': '0102'}}


def test_list_outputs_without_beef():
    session = Session(Response(data={'outputs': None}))
    result = WalletClient('http://wallet', session=session).list_outputs('contacts', include_beef=False)

    assert result == {'outputs': [], 'BEEF': None}
    assert 'include' not in session.posts[0]['json']


def test_relay_round_trip():
    session = Session(
        Response(data={'status': 'success'}),
        Response(data={'status': 'success', 'messages': [
            {'messageId': 'm1', 'body': json.dumps({'txid': 'aa'})},
            {'messageId': 'm2', 'body': 'plain text'},
        ]}),
        Response(data={'status': 'success'}),
    )
    relay = RelayClient('http://relay', session=session)

    relay.send_message('02' + 'ab' * 32, 'box', {'txid': 'aa'}, message_id='aa')
    sent = session.posts[0]['json']['message']
    assert sent['messageId'] == 'aa'
    assert json.loads(sent['body']) == {'txid': 'aa'}

    messages = relay.list_messages('box')
    assert messages[0]['body'] == {'txid': 'aa'}
    assert messages[1]['body'] == 'plain text'

    relay.acknowledge(['m1', 'm2'])
    assert session.posts[2]['json'] == {'messageIds': ['m1', 'm2']}

    # nothing to acknowledge, no request
    assert relay.acknowledge([]) is None
    assert len(session.posts) == 3


def test_relay_errors():
    relay = RelayClient('http://relay', session=Session(
        Response(data={'status': 'error', 'description': 'unknown recipient'}),
        requests.exceptions.ConnectionError('refused'),
    ))

    with pytest.raises(RelayError, match='unknown recipient'):
        relay.send_message('x', 'box', 'hi')
    with pytest.raises(RelayError, match='ConnectionError'):
        relay.list_messages('box')
