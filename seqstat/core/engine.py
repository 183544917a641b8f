# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Single-pass statistics engine.

The engine moves through ``IDLE -> CONSUMING -> FINALIZING -> DONE`` and
never goes back. One engine instance serves exactly one record source.
"""

import logging as lg
from enum import Enum

from . import DEFAULT_KMER_BUDGET
from ..errors import EngineStateError
from .accumulator import Accumulator
from .finalize import finalize
from .result import StatsResult


class EngineState(Enum):
    IDLE = 'idle'
    CONSUMING = 'consuming'
    FINALIZING = 'finalizing'
    DONE = 'done'


def _print_progress(nrecords, infolev=1000000):
    msg = f'...processed {nrecords / 1e6:.1f}M records'
    if nrecords % infolev == 0:
        lg.info(msg)
    else:
        lg.debug(msg)


class StatsEngine:
    """Pulls records one at a time and folds them into an ``Accumulator``.

    Args:
        kmer_budget: Total k-mer occurrences to count. Earlier records get
            priority; once spent, no more k-mers are counted.
        strand_aware: Treat a sequence and its reverse complement as
            duplicates of each other.
    """

    def __init__(self, kmer_budget=DEFAULT_KMER_BUDGET, strand_aware=False):
        self.kmer_budget = kmer_budget
        self.strand_aware = strand_aware
        self.state = EngineState.IDLE
        self.result = None

    def _begin(self):
        if self.state is not EngineState.IDLE:
            raise EngineStateError(f'Engine already used (state={self.state.value})')
        self.state = EngineState.CONSUMING

    def _consume(self, source):
        acc = Accumulator(self.kmer_budget, strand_aware=self.strand_aware)
        for record in source:
            acc.add(record.residues)
            if acc.sequence_count % 100000 == 0:
                _print_progress(acc.sequence_count)
        return acc

    def _finish(self, acc):
        self.state = EngineState.FINALIZING
        if acc.sequence_count == 0:
            lg.info('No records found; skipping finalization')
            self.result = StatsResult.empty(acc.kmer_budget)
        else:
            lg.debug('Finalizing {:,} records ({:,} bases)'.format(
                acc.sequence_count, acc.total_length))
            self.result = finalize(acc)
        self.state = EngineState.DONE
        return self.result

    def run(self, source):
        """Consume ``source`` to exhaustion and return a ``StatsResult``.

        Any exception raised by the source (e.g. ``MalformedInput``)
        propagates and leaves the engine unusable; no partial result is
        produced.
        """
        self._begin()
        acc = self._consume(source)
        return self._finish(acc)
