import os

## wallet service (BRC-100 JSON interface) and message relay
WALLET_URL = os.environ.get('P2PVOICEMAIL_WALLET_URL', 'http://localhost:3321')
RELAY_URL = os.environ.get('P2PVOICEMAIL_RELAY_URL', 'https://messagebox.babbage.systems')

## seconds to wait on any wallet/relay request
REQUEST_TIMEOUT = float(os.environ.get('P2PVOICEMAIL_REQUEST_TIMEOUT', '60'))

## bounded wait for the unsigned spend construction (phase a)
SPEND_CONSTRUCTION_TIMEOUT = 30

## relay message box for new voicemail notifications
MESSAGE_BOX = 'p2p voicemail rebuild new messagebox'

## key derivation
SECURITY_LEVEL = 0
KEY_ID = '1'

## satoshi bounds for a voicemail
MIN_SATOSHIS = 1
MAX_SATOSHIS = 1000

## value locked in bookkeeping tokens (sent copies, contacts)
COPY_SATOSHIS = 1

## max outputs listed per basket
LIST_LIMIT = 1000

## decrypted timestamps further in the future than this are replaced with now (ms)
MAX_CLOCK_SKEW_MS = 24 * 60 * 60 * 1000

## worker threads used when reconstructing a basket
RECONSTRUCT_WORKERS = 8

## wallet descriptions are capped at this length
MAX_DESCRIPTION = 128

## clear-text marker carried by task tokens
TODO_PROTO_ADDR = '1ToDoDtKreEzbHYKFjmoBuduFmSXXUGZG'
