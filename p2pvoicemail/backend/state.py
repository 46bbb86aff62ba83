# state.py
# In-memory view of the wallet's baskets. Safe to drop at any time, the
# wallet is the source of truth.

from threading import RLock

from p2pvoicemail.backend import baskets

################################################################################

# lifecycle stages of a token
CREATED = 'created'
COMMITTED = 'committed'
NOTIFIED = 'notified'
REDEEMED = 'redeemed'
FORGOTTEN = 'forgotten'

TERMINAL = (REDEEMED, FORGOTTEN)

# stage -> stages it may move to
TRANSITIONS = {
    CREATED: (COMMITTED,),
    COMMITTED: (NOTIFIED, REDEEMED, FORGOTTEN),
    NOTIFIED: (REDEEMED, FORGOTTEN),
    REDEEMED: (),
    FORGOTTEN: (),
}


class State(object):
    '''
    'lock': lock this before touching anything below
    'views': view -> list of records (None for outputs that failed to rebuild)
    'stages': outpoint -> lifecycle stage, for tokens this process has touched
    '''

    def __init__(self):
        self.lock = RLock()
        self.views = {view: [] for view in baskets.VIEWS}
        self.stages = {}


    def records(self, view):
        with self.lock:
            return list(self.views[view])

    def replace(self, view, records):
        with self.lock:
            self.views[view] = list(records)

    def add(self, view, record):
        with self.lock:
            self.views[view].append(record)

    def remove(self, view, outpoint):
        '''drop the record for `outpoint` from `view`. @return True if it was there'''
        with self.lock:
            before = len(self.views[view])
            self.views[view] = [r for r in self.views[view] if r is None or r.outpoint != outpoint]
            return len(self.views[view]) != before

    def find(self, view, outpoint):
        with self.lock:
            for r in self.views[view]:
                if r is not None and r.outpoint == outpoint:
                    return r

        return None


    def stage(self, outpoint):
        with self.lock:
            return self.stages.get(outpoint)

    def advance(self, outpoint, stage):
        '''
        move `outpoint` to `stage`. unknown outpoints are assumed committed,
        they were found on the ledger.

        @raise ValueError on a move the lifecycle does not allow
        '''
        with self.lock:
            current = self.stages.get(outpoint, COMMITTED)
            if stage != current and stage not in TRANSITIONS[current]:
                raise ValueError(f'{outpoint}: cannot go from {current} to {stage}')

            self.stages[outpoint] = stage

    def is_spent(self, outpoint):
        return self.stage(outpoint) in TERMINAL
