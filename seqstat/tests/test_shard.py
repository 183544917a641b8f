# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Tests for the sharded engine."""

import dataclasses
import io

import pytest

from seqstat.core.engine import EngineState, StatsEngine
from seqstat.core.shard import ShardedEngine, iter_chunks, split_budget
from seqstat.errors import EngineStateError, MalformedInput
from seqstat.io.records import FastaSource, FastqSource, Record
from seqstat.tests.test_engine import random_fasta


def fasta(text):
    return FastaSource(io.StringIO(text), name='test.fa')


def as_dict(result):
    d = {f.name: getattr(result, f.name) for f in dataclasses.fields(result)}
    d.pop('avg_shannon_entropy')
    return d


class TestHelpers:
    @pytest.mark.parametrize('budget,nshards,expected', [
        (10, 3, [4, 3, 3]),
        (9, 3, [3, 3, 3]),
        (2, 4, [1, 1, 0, 0]),
        (0, 2, [0, 0]),
        (7, 1, [7]),
    ])
    def test_split_budget(self, budget, nshards, expected):
        parts = split_budget(budget, nshards)
        assert parts == expected
        assert sum(parts) == budget

    def test_iter_chunks(self):
        records = [Record(str(i), 'A' * i) for i in range(5)]
        chunks = list(iter_chunks(iter(records), 2))
        assert chunks == [['', 'A'], ['AA', 'AAA'], ['AAAA']]

    @pytest.mark.parametrize('kwargs', [{'nshards': 0}, {'nshards': 2, 'chunk_size': 0}])
    def test_bad_arguments(self, kwargs):
        with pytest.raises(ValueError):
            ShardedEngine(**kwargs)


class TestEquivalence:
    @pytest.fixture(scope='class')
    def text(self):
        return random_fasta(150, seed=3)

    @pytest.mark.parametrize('nshards,chunk_size', [(1, 1000), (2, 1), (3, 7), (4, 50)])
    def test_matches_sequential(self, text, nshards, chunk_size):
        # budget large enough that no shard runs out
        budget = 10 ** 9
        seq = StatsEngine(kmer_budget=budget).run(fasta(text))
        par = ShardedEngine(nshards, kmer_budget=budget, chunk_size=chunk_size).run(fasta(text))
        assert as_dict(par)['kmer_budget'] == budget
        assert as_dict(par) == as_dict(seq)
        assert par.avg_shannon_entropy == pytest.approx(seq.avg_shannon_entropy)

    def test_cross_shard_duplicates(self):
        text = '>a\nACGT\n>b\nACGT\n>c\nacgt\n>d\nTTTT\n'
        r = ShardedEngine(3, chunk_size=1).run(fasta(text))
        assert r.duplicate_sequence_count == 2

    def test_budget_never_exceeded(self, text):
        r = ShardedEngine(3, kmer_budget=100, chunk_size=5).run(fasta(text))
        assert r.kmers_counted <= 100
        assert sum(r.top_kmers.values()) <= 100
        assert r.kmer_budget == 100

    def test_deterministic(self, text):
        r1 = ShardedEngine(3, kmer_budget=100, chunk_size=5).run(fasta(text))
        r2 = ShardedEngine(3, kmer_budget=100, chunk_size=5).run(fasta(text))
        assert as_dict(r1) == as_dict(r2)


class TestLifecycle:
    def test_empty(self):
        engine = ShardedEngine(2)
        r = engine.run(fasta(''))
        assert r.sequence_count == 0
        assert engine.state is EngineState.DONE

    def test_single_use(self):
        engine = ShardedEngine(2)
        engine.run(fasta('>a\nACGT\n'))
        with pytest.raises(EngineStateError):
            engine.run(fasta('>a\nACGT\n'))

    def test_malformed_propagates(self):
        src = FastqSource(io.StringIO('@r1\nACGT\n+\nIIII\n@r2\nAC\n'), name='bad.fq')
        with pytest.raises(MalformedInput):
            ShardedEngine(2, chunk_size=1).run(src)
