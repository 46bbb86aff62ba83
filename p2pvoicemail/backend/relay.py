# relay.py
# Store-and-forward message relay client (MessageBox HTTP interface).

import json

import requests

from p2pvoicemail.backend import settings
from p2pvoicemail.backend.errors import RelayError


class RelayClient(object):
    '''
    send/list/acknowledge messages in a named message box.
    authentication is left to `session` (a configured requests.Session).
    '''

    def __init__(self, url=settings.RELAY_URL, timeout=settings.REQUEST_TIMEOUT, session=None):
        self.url = url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()


    def post(self, api, message):
        '''hit `{url}/{api}` with `message`'''
        try:
            r = self.session.post(f'{self.url}/{api}', json=message, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise RelayError(f'{api}: {e.__class__.__name__}: {e}') from None

        try:
            data = r.json()
        except ValueError:
            data = {}

        if r.status_code != 200 or data.get('status') == 'error':
            raise RelayError(f'{api}: {data.get("description") or r.text or r.status_code}')

        return data


    def send_message(self, recipient, message_box, body, message_id=None):
        message = {
            'recipient': recipient,
            'messageBox': message_box,
            'body': body if isinstance(body, str) else json.dumps(body)
        }
        if message_id is not None:
            message['messageId'] = message_id

        return self.post('sendMessage', {'message': message})

    def list_messages(self, message_box):
        '''
        @return [{messageId, sender, body}] where body is parsed JSON when possible
        '''
        messages = self.post('listMessages', {'messageBox': message_box}).get('messages') or []

        for m in messages:
            if isinstance(m.get('body'), str):
                try:
                    m['body'] = json.loads(m['body'])
                except ValueError:
                    pass

        return messages

    def acknowledge(self, message_ids):
        if not message_ids:
            return None

        return self.post('acknowledgeMessage', {'messageIds': list(message_ids)})
