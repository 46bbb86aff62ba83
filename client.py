#!/usr/bin/env python3
'''
Usage:
    $ client.py [8000]
'''

import argparse
import base64
import datetime
import requests

# parse arguments
parser = argparse.ArgumentParser()
parser.add_argument('port', help='port the node listens on, e.g. "8000"', type=int, nargs='?', default=8000)
parser.add_argument('--host', help='host the node listens on', type=str, default='127.0.0.1')
args = parser.parse_args()

HOST = f'http://{args.host}:{args.port}'

################################################################################

help_message = '''
Usage:

$ client.py [PORT] [--host HOST]

Available commands:

* `send [recipient] [sats] [audio_file] [note...]`    Send a voicemail (recipient may be `self`)
* `inbox` / `sent` / `archived`                         List voicemails
* `absorb`                                              Fetch new voicemails from the relay
* `play [view] [n] [out_file]`                          Save the audio of voicemail `n` to `out_file`
* `redeem [n]`                                          Redeem inbox voicemail `n`, keep an archived copy
* `forget [view] [n]`                                   Forget voicemail `n` of `view`
* `help`                                                Print this help message
* `exit`                                                Exit client (will not stop server)

Extra commands:

* `contacts`                                            List contacts
* `contact [identity_key] [name...]`                    Save a contact
* `forget_contact [n]`                                  Forget contact `n`
* `tasks`                                               List tasks
* `task [sats] [description...]`                        Create a task
* `complete [n]`                                        Complete task `n`
'''

################################################################################

# last listing of each view, commands refer to records by their index in it
listings = {}


def when(ms):
    return datetime.datetime.fromtimestamp(ms / 1000).strftime('%Y-%m-%d %H:%M')


def refresh(view):
    response = requests.get(f'{HOST}/refresh/{view}/')
    if response.status_code != 200:
        print(f'Error: {response.text}')
        return []

    listings[view] = response.json()['records']
    return listings[view]


def pick(view, n):
    if view not in listings:
        refresh(view)

    r = listings[view][int(n)]
    if r is None:
        raise ValueError(f'{view} #{n} could not be read')

    return r


def post(api, data):
    response = requests.post(f'{HOST}/{api}/', data)
    if response.status_code == 200:
        print('OK.')
        return response.json()

    print(f'Error: {response.text}')
    return None


# Enter main loop
while True:
    cmd = input("> ").strip()
    parts = cmd.split()

    if not parts:
        continue

    try:
        if parts[0] in ('inbox', 'sent', 'archived'):
            for i, r in enumerate(refresh(parts[0])):
                if r is None:
                    print(f'{i}\t(unreadable)')
                    continue

                print(f'{i}\t{r["identity"][:16]}\t{when(r["timestamp"])}\t{r["satoshis"]}\tsats\t{r["note"]}')

        elif parts[0] == 'contacts':
            for i, r in enumerate(refresh('contacts')):
                print(f'{i}\t(unreadable)' if r is None else f'{i}\t{r["name"]}\t{r["identity_key"]}')

        elif parts[0] == 'tasks':
            for i, r in enumerate(refresh('tasks')):
                print(f'{i}\t(unreadable)' if r is None else f'{i}\t{r["satoshis"]}\tsats\t{r["description"]}')

        elif parts[0] == 'send':
            with open(parts[3], 'rb') as fin:
                audio = base64.b64encode(fin.read()).decode()

            res = post('send_voicemail', {
                'recipient': parts[1],
                'satoshis': parts[2],
                'audio': audio,
                'note': ' '.join(parts[4:])
            })
            if res is not None:
                print(f'{res["outpoint"]}\t{res["stage"]}')

        elif parts[0] == 'absorb':
            res = post('absorb', {})
            if res is not None:
                print(f'{len(res["absorbed"])} new voicemails')

        elif parts[0] == 'play':
            r = pick(parts[1], parts[2])
            with open(parts[3], 'wb') as fout:
                fout.write(base64.b64decode(r['audio']))

        elif parts[0] == 'redeem':
            post('redeem', {'outpoint': pick('inbox', parts[1])['outpoint']})
            listings.pop('inbox', None)

        elif parts[0] == 'forget':
            post('forget', {'outpoint': pick(parts[1], parts[2])['outpoint'], 'view': parts[1]})
            listings.pop(parts[1], None)

        elif parts[0] == 'contact':
            post('create_contact', {'identity_key': parts[1], 'name': ' '.join(parts[2:])})

        elif parts[0] == 'forget_contact':
            post('forget_contact', {'outpoint': pick('contacts', parts[1])['outpoint']})
            listings.pop('contacts', None)

        elif parts[0] == 'task':
            post('create_task', {'satoshis': parts[1], 'description': ' '.join(parts[2:])})

        elif parts[0] == 'complete':
            post('complete_task', {'outpoint': pick('tasks', parts[1])['outpoint']})
            listings.pop('tasks', None)

        elif parts[0] == 'help':
            print(help_message)

        elif parts[0] == 'exit':
            exit(0)

        else:
            print(f'{cmd}: Unknown command. See `help`')

    except (IndexError, KeyError, ValueError, OSError) as e:
        print(f'error: {e.__class__.__name__}: {e}')
    except requests.exceptions.RequestException as e:
        print(f'Could not connect to {HOST}: {e.__class__.__name__}: {e}')
