# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Partitioned variant of the statistics engine.

Records are read sequentially and grouped into chunks; chunk ``j`` is
folded into shard ``j % nshards`` on a thread pool, with at most one chunk
in flight per shard. Shard accumulators are merged in shard order and
finalized once.

Every statistic matches the sequential engine except k-mer sampling: the
global budget is split into per-shard budgets, so the sampled k-mers
differ from a sequential run over the same input (the total counted never
exceeds the global budget).
"""

import functools
import logging as lg
from concurrent.futures import ThreadPoolExecutor

from . import DEFAULT_KMER_BUDGET
from .accumulator import Accumulator
from .engine import StatsEngine


def split_budget(budget, nshards):
    """Split ``budget`` into ``nshards`` near-equal parts, earlier shards first."""
    base, extra = divmod(budget, nshards)
    return [base + (1 if i < extra else 0) for i in range(nshards)]


def iter_chunks(source, chunk_size):
    """Group the residue strings of ``source`` into lists of ``chunk_size``."""
    chunk = []
    for record in source:
        chunk.append(record.residues)
        if len(chunk) == chunk_size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


def _fold(acc, chunk):
    for residues in chunk:
        acc.add(residues)
    return acc


class ShardedEngine(StatsEngine):
    """``StatsEngine`` that spreads records over ``nshards`` accumulators.

    Args:
        nshards: Number of shards (and worker threads).
        kmer_budget: Global k-mer budget, split across shards.
        strand_aware: See ``StatsEngine``.
        chunk_size: Records per unit of work.
    """

    def __init__(self, nshards, kmer_budget=DEFAULT_KMER_BUDGET, strand_aware=False,
                 chunk_size=1000):
        if nshards < 1:
            raise ValueError(f'nshards must be >= 1, got {nshards}')
        if chunk_size < 1:
            raise ValueError(f'chunk_size must be >= 1, got {chunk_size}')
        super().__init__(kmer_budget, strand_aware)
        self.nshards = nshards
        self.chunk_size = chunk_size

    def _consume(self, source):
        shards = [Accumulator(b, strand_aware=self.strand_aware)
                  for b in split_budget(self.kmer_budget, self.nshards)]
        pending = [None] * self.nshards
        lg.debug(f'Sharded run: {self.nshards} shards, chunk size {self.chunk_size}')

        with ThreadPoolExecutor(max_workers=self.nshards) as pool:
            for j, chunk in enumerate(iter_chunks(source, self.chunk_size)):
                s = j % self.nshards
                if pending[s] is not None:
                    pending[s].result()
                pending[s] = pool.submit(_fold, shards[s], chunk)
            for fut in pending:
                if fut is not None:
                    fut.result()

        for i, acc in enumerate(shards):
            lg.debug(f'Shard {i}: {acc.sequence_count:,} records, {acc.kmers_counted:,} k-mers')
        return functools.reduce(Accumulator.merge, shards)
