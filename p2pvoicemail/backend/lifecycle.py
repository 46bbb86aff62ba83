# lifecycle.py
# Send, notify, absorb, redeem-and-archive, forget: every transition a token
# goes through, from creation to being spent.

import json
from concurrent.futures import ThreadPoolExecutor

from p2pvoicemail.backend import baskets, namespaces, pushdrop, settings, spend, state
from p2pvoicemail.backend.crypto import FieldCipher, now_ms
from p2pvoicemail.backend.errors import (NotificationDeliveryFailure, RelayError,
                                         SpendConstructionFailure, TransactionNotFound,
                                         VoicemailError, WalletError)
from p2pvoicemail.backend.reconstruct import Pipeline, decode_token, load_bundle, locate, unlocking_counterparty
from p2pvoicemail.backend.records import (ContactRecord, Outpoint, SpendIntent, TaskRecord,
                                          VoicemailRecord, is_identity_key)
from p2pvoicemail.backend.wallet import SELF

################################################################################

class SendResult(object):
    '''
    'outpoint': the primary token
    'txid': transaction that created it
    'stage': COMMITTED, or NOTIFIED once the peer was told
    'copy_outpoint': sent-copy token, if one was made
    '''

    def __init__(self, outpoint, txid, stage, copy_outpoint=None):
        self.outpoint = outpoint
        self.txid = txid
        self.stage = stage
        self.copy_outpoint = copy_outpoint

    @property
    def notified(self):
        return self.stage == state.NOTIFIED

    def dict(self):
        return dict(
            outpoint=str(self.outpoint),
            txid=self.txid,
            stage=self.stage,
            copy_outpoint=str(self.copy_outpoint) if self.copy_outpoint else None
        )


def _description(text):
    return text[:settings.MAX_DESCRIPTION]


class Engine(object):
    '''
    drives tokens through their lifecycle. wallet and relay are injected,
    the relay is optional (no notifications, no absorbing).
    '''

    def __init__(self, wallet, relay=None, pipeline=None, local_state=None, clock=now_ms):
        self.wallet = wallet
        self.relay = relay
        self.clock = clock
        self.pipeline = pipeline or Pipeline(wallet, clock=clock)
        self.state = local_state or state.State()


    @property
    def identity(self):
        return self.wallet.identity_key()


    ## building tokens

    def cipher(self, purpose, counterparty=SELF):
        return FieldCipher(self.wallet, namespaces.namespace_for(purpose), counterparty)

    def token_output(self, purpose, cipher, slots, satoshis, description, tracked=True):
        '''
        createAction output for a token carrying the (already protected) `slots`.
        untracked outputs go into no basket of ours, the recipient internalizes them
        '''
        namespace = namespaces.namespace_for(purpose)
        script = pushdrop.lock(cipher.locking_key(), namespace.arrange(slots))

        output = {
            'lockingScript': script.hex(),
            'satoshis': satoshis,
            'outputDescription': _description(description)
        }
        if tracked:
            output['basket'] = namespace.default_basket

        return output

    def voicemail_slots(self, cipher, identity, audio, timestamp, note):
        '''slot 0 is the clear sender on inbox tokens, an encrypted identity on copies'''
        return {
            cipher.namespace.schema[0].name: identity,
            'audio': cipher.protect(audio),
            'timestamp': cipher.protect_timestamp(timestamp),
            'note': cipher.protect_text(note) if note else None,
        }

    def create(self, outputs, description):
        '''
        one all-or-nothing action creating `outputs`.
        @return (txid, AtomicBEEF bytes or None)
        @raise SpendConstructionFailure, nothing was committed
        '''
        try:
            result = self.wallet.create_action(_description(description), outputs=outputs)
        except WalletError as e:
            raise SpendConstructionFailure(str(e)) from None

        if not result.get('txid'):
            raise SpendConstructionFailure('Failed to create transaction: no transaction ID returned')

        return result['txid'], result.get('tx')


    ## send + notify

    def send(self, intent):
        '''
        Created -> Committed (-> Notified for peers).

        @return SendResult
        @raise ValueError for a bad intent, SpendConstructionFailure if nothing was committed
        '''
        own = self.identity
        intent.validate(own)

        to_self = intent.to_self(own)
        recipient = own if to_self else intent.recipient
        purpose = namespaces.VOICEMAIL_TO_SELF if to_self else namespaces.VOICEMAIL_TO_PEER
        timestamp = self.clock()

        try:
            cipher = self.cipher(purpose, SELF if to_self else recipient)
            slots = self.voicemail_slots(cipher, own.encode('utf-8'), intent.audio, timestamp, intent.note)
            outputs = [self.token_output(purpose, cipher, slots, intent.satoshis,
                                         'Voicemail to self' if to_self else f'Voicemail to {recipient}',
                                         tracked=to_self)]

            if intent.save_copy:
                copy_cipher = self.cipher(namespaces.VOICEMAIL_SENT_COPY)
                copy_slots = self.voicemail_slots(copy_cipher, copy_cipher.protect_text(recipient),
                                                  intent.audio, timestamp, intent.note)
                outputs.append(self.token_output(namespaces.VOICEMAIL_SENT_COPY, copy_cipher, copy_slots,
                                                 settings.COPY_SATOSHIS, f'Sent voicemail to {recipient}'))
        except WalletError as e:
            raise SpendConstructionFailure(f'could not build voicemail: {e}') from None

        txid, tx = self.create(outputs, 'Send voicemail to self' if to_self else f'Send voicemail to {recipient}')

        outpoint = Outpoint(txid, 0)
        copy_outpoint = Outpoint(txid, 1) if intent.save_copy else None
        self.state.advance(outpoint, state.COMMITTED)
        if copy_outpoint:
            self.state.advance(copy_outpoint, state.COMMITTED)

        result = SendResult(outpoint, txid, state.COMMITTED, copy_outpoint)
        if not to_self and self.notify(recipient, txid, tx, intent.satoshis, timestamp):
            self.state.advance(outpoint, state.NOTIFIED)
            result.stage = state.NOTIFIED

        return result

    def notify(self, recipient, txid, tx, satoshis, timestamp):
        '''
        tell the recipient about a new token. best effort: the token is on the
        ledger either way. @return True if the relay took the message
        '''
        try:
            if self.relay is None:
                raise NotificationDeliveryFailure('no relay configured')
            if not tx:
                raise NotificationDeliveryFailure('wallet returned no transaction to forward')

            self.relay.send_message(recipient, settings.MESSAGE_BOX, {
                'type': settings.MESSAGE_BOX,
                'txid': txid,
                'satoshis': satoshis,
                'timestamp': timestamp,
                'message': json.dumps({'txid': txid, 'tx': list(tx)})
            }, message_id=txid)
            return True

        except (NotificationDeliveryFailure, RelayError) as e:
            print(f'Engine.notify: {txid}: {e.__class__.__name__}: {e}')
            return False


    ## absorb

    def absorb(self):
        '''
        internalize every voicemail the relay told us about into the inbox
        basket. known outpoints are skipped, so running twice is harmless.
        outpoints already redeemed or forgotten are never taken back in.

        @return list of newly absorbed Outpoints
        '''
        if self.relay is None:
            return []

        basket = baskets.insertion_basket_for(namespaces.VOICEMAIL_TO_PEER)
        messages = self.relay.list_messages(settings.MESSAGE_BOX)
        if not messages:
            return []

        known = {o['outpoint'] for o in self.wallet.list_outputs(basket, include_beef=False)['outputs']}

        absorbed = []
        processed = []
        for m in messages:
            # junk is acknowledged (dropped), wallet failures are left for the next run
            try:
                outpoint, tx = self.unpack_notification(m)
            except Exception as e:
                print(f'Engine.absorb: dropping {m.get("messageId")}: {e.__class__.__name__}: {e}')
                processed.append(m.get('messageId'))
                continue

            if self.state.is_spent(outpoint):
                print(f'Engine.absorb: {outpoint} is already {self.state.stage(outpoint)}')
                processed.append(m.get('messageId'))
                continue

            try:
                if str(outpoint) not in known:
                    self.wallet.internalize_action(tx, basket, output_index=outpoint.index)
                    known.add(str(outpoint))
                    absorbed.append(outpoint)

                processed.append(m.get('messageId'))

            except WalletError as e:
                print(f'Engine.absorb: {outpoint}: {e}')

        processed = [i for i in processed if i is not None]

        try:
            self.relay.acknowledge(processed)
        except RelayError as e:
            print(f'Engine.absorb: acknowledge: {e}')

        return absorbed

    def unpack_notification(self, message):
        '''
        @return (Outpoint, AtomicBEEF bytes) of the voicemail a relay message points at
        @raise ValueError / MalformedToken for anything that is not one
        '''
        body = message['body']
        if isinstance(body, str):
            body = json.loads(body)

        payload = json.loads(body['message'])
        txid = payload['txid']
        tx = bytes(payload['tx'])

        bundle = load_bundle(tx)
        if bundle is None:
            raise ValueError('message carries no transaction')
        if bundle.subject not in (None, txid):
            raise ValueError(f'bundle is about {bundle.subject}, not {txid}')

        outpoint = Outpoint(txid, 0)
        txout = locate(bundle, outpoint)
        decode_token(namespaces.VOICEMAIL_TO_PEER, txout.locking_script)

        return outpoint, tx


    ## spending

    def locate(self, outpoint, purposes):
        '''
        find a live token in the baskets of `purposes`

        @return (purpose, basket, bundle bytes, TokenOutput)
        @raise TransactionNotFound
        '''
        scanned = [baskets.insertion_basket_for(p) for p in purposes]

        if not self.state.is_spent(outpoint):
            for purpose, basket in zip(purposes, scanned):
                listing = self.wallet.list_outputs(basket, include_beef=True)
                if str(outpoint) not in {o['outpoint'] for o in listing['outputs']}:
                    continue

                try:
                    bundle = load_bundle(listing['BEEF'])
                except ValueError as e:
                    print(f'Engine.locate: "{basket}": bad proof bundle: {e}')
                    continue

                return purpose, basket, listing['BEEF'], locate(bundle, outpoint, basket)

        raise TransactionNotFound(outpoint, scanned)

    def spend_token(self, outpoint, purposes, description, outputs_for=None):
        '''
        two-phase spend of the token at `outpoint`. `outputs_for(purpose, txout)`
        builds the outputs created along with the spend.

        @return (txid, purpose, TokenOutput)
        '''
        purpose, basket, bundle, txout = self.locate(outpoint, purposes)
        token, slots = decode_token(purpose, txout.locking_script)

        intent = SpendIntent(
            outpoint=outpoint,
            locking_script=txout.locking_script,
            satoshis=txout.satoshis,
            namespace=namespaces.namespace_for(purpose),
            counterparty=unlocking_counterparty(purpose, slots),
            beef=bundle,
            outputs=outputs_for(purpose, txout) if outputs_for else [],
            description=_description(description)
        )

        txid = spend.spend(self.wallet, intent)
        return txid, purpose, txout

    def redeem_and_archive(self, record):
        '''
        spend an inbox voicemail into one archived token carrying the same
        sender/audio/timestamp/note and value. the inbox record stays visible
        until the spend is signed.

        @return the archived VoicemailRecord
        '''
        inbox = baskets.purposes_for(baskets.INBOX)
        cipher = self.cipher(namespaces.VOICEMAIL_ARCHIVED_COPY)
        archived = {}

        def outputs_for(purpose, txout):
            try:
                slots = self.voicemail_slots(cipher, cipher.protect_text(record.identity),
                                             record.audio, record.timestamp, record.note)
                output = self.token_output(namespaces.VOICEMAIL_ARCHIVED_COPY, cipher, slots, txout.satoshis,
                                           f'Archive voicemail from {record.identity}')
            except WalletError as e:
                raise SpendConstructionFailure(f'could not build archived copy: {e}') from None

            archived['script'] = bytes.fromhex(output['lockingScript'])
            return [output]

        txid, purpose, txout = self.spend_token(
            record.outpoint, inbox, f'Redeem {record.satoshis} satoshis from voicemail', outputs_for)

        self.state.advance(record.outpoint, state.REDEEMED)
        self.state.remove(baskets.INBOX, record.outpoint)

        copy = VoicemailRecord(
            outpoint=Outpoint(txid, 0),
            identity=record.identity,
            timestamp=record.timestamp,
            satoshis=txout.satoshis,
            audio=record.audio,
            locking_script=archived['script'],
            purpose=namespaces.VOICEMAIL_ARCHIVED_COPY,
            counterparty=SELF,
            note=record.note
        )
        self.state.advance(copy.outpoint, state.COMMITTED)
        self.state.add(baskets.ARCHIVED, copy)
        return copy

    def forget(self, record):
        '''
        spend a voicemail (inbox, sent or archived) with no new outputs.
        the record leaves the local view only once the spend is signed.

        @return txid
        '''
        view = _voicemail_view(record)
        txid, purpose, txout = self.spend_token(
            record.outpoint, baskets.purposes_for(view), 'Forget voicemail')

        self.state.advance(record.outpoint, state.FORGOTTEN)
        self.state.remove(view, record.outpoint)
        return txid


    ## contacts

    def create_contact(self, name, identity_key):
        '''@return ContactRecord of the new contact token'''
        name = (name or '').strip()
        if not name:
            raise ValueError('contact needs a name')
        if not is_identity_key(identity_key):
            raise ValueError(f'invalid identity key {identity_key!r}')

        cipher = self.cipher(namespaces.CONTACT)
        timestamp = self.clock()

        try:
            output = self.token_output(namespaces.CONTACT, cipher, {
                'name': cipher.protect_text(name),
                'identity_key': cipher.protect_text(identity_key),
                'timestamp': cipher.protect_timestamp(timestamp),
            }, settings.COPY_SATOSHIS, f'Contact: {name}')
        except WalletError as e:
            raise SpendConstructionFailure(f'could not build contact: {e}') from None

        txid, tx = self.create([output], f'Create encrypted contact: {name}')

        record = ContactRecord(Outpoint(txid, 0), name, identity_key, timestamp,
                               bytes.fromhex(output['lockingScript']))
        self.state.advance(record.outpoint, state.COMMITTED)
        self.state.add(baskets.CONTACTS, record)
        return record

    def forget_contact(self, record):
        txid, purpose, txout = self.spend_token(
            record.outpoint, baskets.purposes_for(baskets.CONTACTS), f'Forget contact: {record.name}')

        self.state.advance(record.outpoint, state.FORGOTTEN)
        self.state.remove(baskets.CONTACTS, record.outpoint)
        return txid


    ## tasks

    def create_task(self, description, satoshis):
        '''@return TaskRecord of the new task token'''
        description = (description or '').strip()
        if not description:
            raise ValueError('Enter a task to complete!')
        if isinstance(satoshis, bool) or not isinstance(satoshis, int) or satoshis < settings.MIN_SATOSHIS:
            raise ValueError(f'The amount must be at least {settings.MIN_SATOSHIS} satoshis!')

        cipher = self.cipher(namespaces.TASK)

        try:
            output = self.token_output(namespaces.TASK, cipher, {
                'protocol_address': settings.TODO_PROTO_ADDR.encode(),
                'task': cipher.protect_text(description),
            }, satoshis, 'New ToDo list item')
        except WalletError as e:
            raise SpendConstructionFailure(f'could not build task: {e}') from None

        txid, tx = self.create([output], f'Create a TODO task: {description}')

        record = TaskRecord(Outpoint(txid, 0), description, satoshis, bytes.fromhex(output['lockingScript']))
        self.state.advance(record.outpoint, state.COMMITTED)
        self.state.add(baskets.TASKS, record)
        return record

    def complete_task(self, record):
        txid, purpose, txout = self.spend_token(
            record.outpoint, baskets.purposes_for(baskets.TASKS), f'Complete a TODO task: "{record.description}"')

        self.state.advance(record.outpoint, state.REDEEMED)
        self.state.remove(baskets.TASKS, record.outpoint)
        return txid


    ## views

    def refresh(self, view):
        '''rebuild `view` from the wallet. @return list of records, None for failed ones'''
        records = self.pipeline.refresh(view)
        self.state.replace(view, records)
        return records

    def refresh_all(self):
        '''
        refresh every view at once, they touch disjoint baskets.
        a view whose baskets could not be listed maps to None
        '''
        def refresh_or_none(view):
            try:
                return self.refresh(view)
            except VoicemailError as e:
                print(f'Engine.refresh_all: {view}: {e.__class__.__name__}: {e}')
                return None

        with ThreadPoolExecutor(max_workers=len(baskets.VIEWS)) as pool:
            return dict(zip(baskets.VIEWS, pool.map(refresh_or_none, baskets.VIEWS)))

    def find(self, view, outpoint):
        '''
        a record of `view` by outpoint, refreshing the view once if it is
        not cached. @raise TransactionNotFound
        '''
        outpoint = Outpoint.parse(outpoint)

        record = self.state.find(view, outpoint)
        if record is None:
            self.refresh(view)
            record = self.state.find(view, outpoint)

        if record is None:
            raise TransactionNotFound(outpoint, baskets.baskets_to_scan(view))

        return record


def _voicemail_view(record):
    if record.purpose in (namespaces.VOICEMAIL_TO_PEER, namespaces.VOICEMAIL_TO_SELF):
        return baskets.INBOX
    if record.purpose == namespaces.VOICEMAIL_SENT_COPY:
        return baskets.SENT

    return baskets.ARCHIVED
