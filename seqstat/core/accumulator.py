# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Per-record scanning and the running aggregate.

``scan_record`` reads one residue string and returns a ``RecordScan``
holding everything that record contributes. ``Accumulator.commit`` folds a
scan into the running totals in one step, so a record interrupted
mid-scan never leaves a partial update behind.

Accumulators merge associatively (see ``Accumulator.merge``), which is
what the sharded engine relies on.
"""

from dataclasses import dataclass

import numpy as np
import xxhash
from numpy.lib.stride_tricks import sliding_window_view
from scipy.stats import entropy

from . import DEFAULT_KMER_BUDGET, KMER_SIZE
from .tables import BASE_CODE, BUCKET, BUCKET_SYMBOLS, N_BUCKET, canonical

_EMPTY_CODES = np.zeros(0, dtype=np.int64)


def fingerprint(residues, strand_aware=False):
    """Duplicate-detection fingerprint of a residue string.

    64-bit xxHash (XXH64, seed 0) of the upper-cased UTF-8 string. With
    ``strand_aware`` the canonical form (smaller of sequence and reverse
    complement) is hashed instead. Distinct strings may collide; a
    collision is counted as a duplicate.
    """
    seq = residues.upper()
    if strand_aware:
        seq = canonical(seq)
    return xxhash.xxh64(seq.encode('utf-8')).intdigest()


def shannon_entropy(base_counts):
    """Base-2 Shannon entropy of A/C/G/T counts. 0.0 for no bases."""
    if base_counts.sum() == 0:
        return 0.0
    return abs(float(entropy(base_counts, base=2)))


def _pack_windows(codes, k):
    """Packed integer codes of every length-k window of ``codes``."""
    weights = 4 ** np.arange(k - 1, -1, -1, dtype=np.int64)
    return sliding_window_view(codes.astype(np.int64), k) @ weights


@dataclass(frozen=True, eq=False)
class RecordScan:
    """Everything a single record contributes to the aggregate."""
    length: int
    composition: np.ndarray           # int64[5], A C G T N/other
    ungapped_composition: np.ndarray  # int64[4], A C G T within contigs
    contig_lengths: list              # left to right
    ambiguous: int
    gap_runs: int
    entropy: float
    fingerprint: int
    kmers: np.ndarray                 # packed codes, already budget-truncated

    @property
    def ungapped_length(self):
        return sum(self.contig_lengths)


def scan_record(residues, kmer_remaining=0, k=KMER_SIZE, strand_aware=False):
    """Scan one residue string.

    Args:
        residues: Sequence string, any case, arbitrary symbols.
        kmer_remaining: How many more k-mer occurrences may be counted.
            Only the first ``kmer_remaining`` windows (left to right) are
            kept.
        k: k-mer length.
        strand_aware: Fingerprint the canonical form for duplicates.

    Returns:
        RecordScan
    """
    # non-ASCII characters become one '?' byte each
    data = np.frombuffer(residues.encode('ascii', errors='replace'), dtype=np.uint8)
    n = len(data)

    # Lookups stay one byte per symbol; counting uses boolean masks
    buckets = BUCKET[data]
    composition = np.array([np.count_nonzero(buckets == b) for b in range(len(BUCKET_SYMBOLS))],
                           dtype=np.int64)
    del buckets
    ungapped = composition[:N_BUCKET].copy()

    codes = BASE_CODE[data]
    valid = codes >= 0

    # Contigs are maximal runs of valid bases; edges alternate start, end
    padded = np.zeros(n + 2, dtype=bool)
    padded[1:-1] = valid
    edges = np.flatnonzero(padded[1:] != padded[:-1])
    del padded
    starts, ends = edges[0::2], edges[1::2]
    contig_lengths = [int(e - s) for s, e in zip(starts, ends)]

    # A gap run starts at an invalid symbol not preceded by another one
    if n:
        gap_runs = int(not valid[0]) + int(np.count_nonzero(valid[:-1] & ~valid[1:]))
    else:
        gap_runs = 0

    kmers = []
    remaining = max(0, int(kmer_remaining))
    for s, clen in zip(starts, contig_lengths):
        if remaining == 0:
            break
        if clen < k:
            continue
        take = min(remaining, clen - k + 1)
        s = int(s)
        kmers.append(_pack_windows(codes[s:s + take + k - 1], k))
        remaining -= take

    return RecordScan(
        length=n,
        composition=composition,
        ungapped_composition=ungapped,
        contig_lengths=contig_lengths,
        ambiguous=int(composition[N_BUCKET]),
        gap_runs=gap_runs,
        entropy=shannon_entropy(ungapped),
        fingerprint=fingerprint(residues, strand_aware),
        kmers=np.concatenate(kmers) if kmers else _EMPTY_CODES,
    )


class Accumulator:
    """Running totals over committed records."""

    def __init__(self, kmer_budget=DEFAULT_KMER_BUDGET, k=KMER_SIZE, strand_aware=False):
        if kmer_budget < 0:
            raise ValueError(f'kmer_budget must be >= 0, got {kmer_budget}')
        self.kmer_budget = int(kmer_budget)
        self.k = k
        self.strand_aware = strand_aware

        self.sequence_count = 0
        self.total_length = 0
        self.ungapped_length = 0
        self.ambiguous_count = 0
        self.gap_count = 0
        self.min_length = None
        self.max_length = None
        self.entropy_sum = 0.0

        self.composition = np.zeros(len(BUCKET_SYMBOLS), dtype=np.int64)
        self.ungapped_composition = np.zeros(4, dtype=np.int64)
        self.scaffold_lengths = []
        self.contig_lengths = []

        self.fingerprints = set()
        self.duplicate_count = 0

        self.kmer_counts = np.zeros(4 ** k, dtype=np.int64)
        self.kmers_counted = 0

    @property
    def kmer_remaining(self):
        return self.kmer_budget - self.kmers_counted

    def add(self, residues):
        """Scan ``residues`` and commit the result."""
        scan = scan_record(residues, self.kmer_remaining, self.k, self.strand_aware)
        self.commit(scan)
        return scan

    def commit(self, scan):
        """Fold one ``RecordScan`` into the running totals.

        Returns True if the record is a duplicate of an earlier one.
        """
        self.sequence_count += 1
        self.total_length += scan.length
        self.ungapped_length += scan.ungapped_length
        self.ambiguous_count += scan.ambiguous
        self.gap_count += scan.gap_runs
        self.entropy_sum += scan.entropy
        if self.min_length is None or scan.length < self.min_length:
            self.min_length = scan.length
        if self.max_length is None or scan.length > self.max_length:
            self.max_length = scan.length

        self.composition += scan.composition
        self.ungapped_composition += scan.ungapped_composition
        self.scaffold_lengths.append(scan.length)
        self.contig_lengths.extend(scan.contig_lengths)

        kmers = scan.kmers[:self.kmer_remaining]
        if len(kmers):
            self.kmer_counts += np.bincount(kmers, minlength=len(self.kmer_counts))
            self.kmers_counted += len(kmers)

        duplicate = scan.fingerprint in self.fingerprints
        if duplicate:
            self.duplicate_count += 1
        else:
            self.fingerprints.add(scan.fingerprint)
        return duplicate

    def merge(self, other):
        """Combine two accumulators built over disjoint record sets.

        Neither input is modified. Records whose fingerprint appears in
        both inputs count once as an original, so the duplicates gained
        by merging are the size of the fingerprint intersection.
        """
        if other.k != self.k:
            raise ValueError(f'Cannot merge k={self.k} with k={other.k}')
        if other.strand_aware != self.strand_aware:
            raise ValueError('Cannot merge strand-aware and strand-unaware fingerprints')
        merged = Accumulator(self.kmer_budget + other.kmer_budget, self.k, self.strand_aware)
        merged.sequence_count = self.sequence_count + other.sequence_count
        merged.total_length = self.total_length + other.total_length
        merged.ungapped_length = self.ungapped_length + other.ungapped_length
        merged.ambiguous_count = self.ambiguous_count + other.ambiguous_count
        merged.gap_count = self.gap_count + other.gap_count
        merged.entropy_sum = self.entropy_sum + other.entropy_sum

        mins = [v for v in (self.min_length, other.min_length) if v is not None]
        maxs = [v for v in (self.max_length, other.max_length) if v is not None]
        merged.min_length = min(mins) if mins else None
        merged.max_length = max(maxs) if maxs else None

        merged.composition = self.composition + other.composition
        merged.ungapped_composition = self.ungapped_composition + other.ungapped_composition
        merged.scaffold_lengths = self.scaffold_lengths + other.scaffold_lengths
        merged.contig_lengths = self.contig_lengths + other.contig_lengths

        merged.duplicate_count = (self.duplicate_count + other.duplicate_count
                                  + len(self.fingerprints & other.fingerprints))
        merged.fingerprints = self.fingerprints | other.fingerprints

        merged.kmer_counts = self.kmer_counts + other.kmer_counts
        merged.kmers_counted = self.kmers_counted + other.kmers_counted
        return merged
