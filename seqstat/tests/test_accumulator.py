# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Tests for per-record scanning and the Accumulator."""

import tracemalloc

import numpy as np
import pytest
import xxhash
from numpy.testing import assert_array_equal

from seqstat.core.accumulator import (
    Accumulator,
    fingerprint,
    scan_record,
    shannon_entropy,
)
from seqstat.core.tables import encode_kmer


# --- Hashing ---


class TestFingerprint:
    def test_xxh64_of_upper_case_bytes(self):
        assert fingerprint('') == xxhash.xxh64(b'').intdigest()
        assert fingerprint('acgt') == xxhash.xxh64(b'ACGT').intdigest()
        assert 0 <= fingerprint('ACGT') < 2 ** 64

    def test_case_insensitive(self):
        assert fingerprint('acgtn') == fingerprint('ACGTN')

    def test_distinct_sequences(self):
        assert fingerprint('ACGT') != fingerprint('ACGA')

    def test_strand_aware(self):
        assert fingerprint('AACC') != fingerprint('GGTT')
        assert fingerprint('AACC', strand_aware=True) == fingerprint('ggtt', strand_aware=True)


class TestEntropy:
    @pytest.mark.parametrize('counts,expected', [
        ([0, 0, 0, 0], 0.0),
        ([4, 0, 0, 0], 0.0),
        ([1, 1, 0, 0], 1.0),
        ([2, 2, 2, 2], 2.0),
    ])
    def test_values(self, counts, expected):
        assert shannon_entropy(np.array(counts)) == pytest.approx(expected)

    def test_single_base_not_negative_zero(self):
        h = shannon_entropy(np.array([7, 0, 0, 0]))
        assert str(h) == '0.0'


# --- scan_record ---


class TestScanRecord:
    def test_composition_and_segmentation(self):
        scan = scan_record('ACGTNNacgtX', kmer_remaining=100)
        assert scan.length == 11
        assert_array_equal(scan.composition, [2, 2, 2, 2, 3])
        assert_array_equal(scan.ungapped_composition, [2, 2, 2, 2])
        assert scan.contig_lengths == [4, 4]
        assert scan.ungapped_length == 8
        assert scan.ambiguous == 3
        assert scan.gap_runs == 2
        assert scan.entropy == pytest.approx(2.0)
        assert len(scan.kmers) == 0

    def test_all_ambiguous(self):
        scan = scan_record('NNNN')
        assert_array_equal(scan.composition, [0, 0, 0, 0, 4])
        assert scan.contig_lengths == []
        assert scan.ambiguous == 4
        assert scan.gap_runs == 1
        assert scan.entropy == 0.0

    def test_empty(self):
        scan = scan_record('', kmer_remaining=10)
        assert scan.length == 0
        assert scan.composition.sum() == 0
        assert scan.contig_lengths == []
        assert scan.gap_runs == 0
        assert scan.entropy == 0.0
        assert scan.fingerprint == fingerprint('')
        assert len(scan.kmers) == 0

    def test_non_ascii_counts_as_other(self):
        scan = scan_record('A\u00e9T')
        assert scan.length == 3
        assert_array_equal(scan.composition, [1, 0, 0, 1, 1])
        assert scan.contig_lengths == [1, 1]

    def test_gap_runs_at_edges(self):
        scan = scan_record('NACGTNNNACGN')
        assert scan.gap_runs == 3
        assert scan.contig_lengths == [4, 3]

    def test_composition_sums_to_length(self):
        seq = 'ACGTRYKM--acgtnnXYZ'
        scan = scan_record(seq)
        assert scan.composition.sum() == len(seq)
        assert scan.ungapped_composition.sum() <= len(seq)

    def test_large_record_memory(self):
        seq = ('ACGT' * 2500 + 'NNNN') * 200
        n = len(seq)
        tracemalloc.start()
        try:
            scan_record(seq, kmer_remaining=0)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        assert peak < 10 * n

    def test_kmer_memory_bounded_by_budget(self):
        n = 2_000_000
        seq = 'ACGT' * (n // 4)
        tracemalloc.start()
        try:
            scan = scan_record(seq, kmer_remaining=1000)
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        assert len(scan.kmers) == 1000
        assert peak < 10 * n

    def test_kmers_in_order(self):
        scan = scan_record('ACGTAC', kmer_remaining=100)
        assert scan.kmers.tolist() == [encode_kmer('ACGTA'), encode_kmer('CGTAC')]

    def test_kmers_never_span_gap(self):
        scan = scan_record('ACGNTACGT', kmer_remaining=100)
        assert scan.kmers.tolist() == [encode_kmer('TACGT')]

    def test_kmers_truncated_mid_record(self):
        scan = scan_record('ACGTACNACGTAC', kmer_remaining=3)
        assert scan.kmers.tolist() == [108, 433, 108]

    def test_no_budget_no_kmers(self):
        scan = scan_record('ACGTACGTACGT', kmer_remaining=0)
        assert len(scan.kmers) == 0

    def test_lowercase_kmers(self):
        scan = scan_record('acgta', kmer_remaining=1)
        assert scan.kmers.tolist() == [108]


# --- Accumulator ---


@pytest.fixture
def records():
    return ['ACGT', 'TTTT', 'acgt', 'NNACGTACGTNN', '', 'GGGCCCAAATTT']


def _fill(seqs, **kwargs):
    acc = Accumulator(**kwargs)
    for s in seqs:
        acc.add(s)
    return acc


class TestAccumulator:
    def test_totals(self, records):
        acc = _fill(records)
        assert acc.sequence_count == 6
        assert acc.total_length == sum(len(s) for s in records)
        assert acc.composition.sum() == acc.total_length
        assert acc.ungapped_length == sum(acc.contig_lengths)
        assert acc.ungapped_composition.sum() == acc.ungapped_length
        assert sum(acc.scaffold_lengths) == acc.total_length
        assert acc.scaffold_lengths == [len(s) for s in records]
        assert acc.min_length == 0
        assert acc.max_length == 12

    def test_duplicates(self, records):
        acc = _fill(records)
        # 'acgt' repeats 'ACGT'
        assert acc.duplicate_count == 1
        assert len(acc.fingerprints) == 5

    def test_commit_reports_duplicate(self):
        acc = Accumulator()
        assert acc.commit(scan_record('ACGT')) is False
        assert acc.commit(scan_record('ACGT')) is True

    def test_empty_record_fingerprinted(self):
        acc = _fill(['', ''])
        assert acc.duplicate_count == 1
        assert acc.scaffold_lengths == [0, 0]

    def test_kmer_budget_global(self):
        acc = _fill(['ACGTAC', 'ACGTAC'], kmer_budget=3)
        assert acc.kmers_counted == 3
        assert acc.kmer_remaining == 0
        assert acc.kmer_counts[encode_kmer('ACGTA')] == 2
        assert acc.kmer_counts[encode_kmer('CGTAC')] == 1
        assert acc.kmer_counts.sum() == 3

    def test_commit_enforces_budget(self):
        acc = Accumulator(kmer_budget=1)
        acc.commit(scan_record('ACGTACGT', kmer_remaining=100))
        assert acc.kmers_counted == 1

    def test_zero_budget(self):
        acc = _fill(['ACGTACGTACGT'] * 3, kmer_budget=0)
        assert acc.kmers_counted == 0
        assert acc.kmer_counts.sum() == 0

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            Accumulator(kmer_budget=-1)


class TestMerge:
    def test_merge_matches_sequential(self, records):
        whole = _fill(records)
        merged = _fill(records[:3]).merge(_fill(records[3:]))
        assert merged.sequence_count == whole.sequence_count
        assert merged.total_length == whole.total_length
        assert merged.ungapped_length == whole.ungapped_length
        assert merged.ambiguous_count == whole.ambiguous_count
        assert merged.gap_count == whole.gap_count
        assert merged.min_length == whole.min_length
        assert merged.max_length == whole.max_length
        assert merged.duplicate_count == whole.duplicate_count
        assert merged.fingerprints == whole.fingerprints
        assert merged.entropy_sum == pytest.approx(whole.entropy_sum)
        assert_array_equal(merged.composition, whole.composition)
        assert_array_equal(merged.ungapped_composition, whole.ungapped_composition)
        assert merged.scaffold_lengths == whole.scaffold_lengths
        assert merged.contig_lengths == whole.contig_lengths

    def test_cross_shard_duplicates(self):
        a = _fill(['ACGT', 'TTTT'])
        b = _fill(['ACGT', 'ACGT'])
        assert a.duplicate_count == 0
        assert b.duplicate_count == 1
        assert a.merge(b).duplicate_count == 2
        assert b.merge(a).duplicate_count == 2

    def test_merge_associative(self):
        a, b, c = _fill(['AAAA', 'CCCC']), _fill(['AAAA']), _fill(['CCCC', 'AAAA'])
        left = a.merge(b).merge(c)
        right = a.merge(b.merge(c))
        assert left.duplicate_count == right.duplicate_count == 3
        assert left.sequence_count == right.sequence_count == 5

    def test_merge_does_not_modify_inputs(self):
        a = _fill(['ACGTAC'], kmer_budget=10)
        b = _fill(['ACGTAC'], kmer_budget=10)
        merged = a.merge(b)
        assert a.sequence_count == 1
        assert a.kmer_counts.sum() == 2
        assert merged.kmer_counts.sum() == 4
        assert merged.kmer_budget == 20

    def test_merge_rejects_mixed_strand_modes(self):
        with pytest.raises(ValueError):
            Accumulator().merge(Accumulator(strand_aware=True))
        with pytest.raises(ValueError):
            Accumulator(k=4).merge(Accumulator())

    def test_merge_empty(self):
        a = _fill(['ACGT'])
        merged = a.merge(Accumulator())
        assert merged.min_length == 4
        assert merged.max_length == 4
        assert Accumulator().merge(Accumulator()).min_length is None
