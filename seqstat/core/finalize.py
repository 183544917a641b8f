# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Distribution statistics computed once the record stream is exhausted.

Nothing here mutates its inputs: length sequences are copied before
sorting, so finalizing the same accumulator twice gives the same result.
"""

import numpy as np

from . import NX_PERCENTS, TOP_KMERS
from .result import StatsResult
from .tables import BASES, BUCKET_SYMBOLS, decode_kmer

# (upper bound, bin width); lengths at or above the last bound use 1 Mb bins
_HISTOGRAM_STEPS = (
    (1000, 1),
    (10000, 1000),
    (100000, 10000),
    (1000000, 100000),
)
_LARGEST_STEP = 1000000


def nx_lx(lengths, percent):
    """Compute N<percent> and L<percent> for a sequence of lengths.

    Lengths are sorted descending and accumulated; the first length whose
    running sum reaches ``ceil(total * percent / 100)`` is N, its 1-based
    rank is L.

    Args:
        lengths: Iterable of non-negative ints.
        percent: Integer coverage percentage, e.g. 50 for N50.

    Returns:
        (nx, lx) tuple of ints. (0, 0) when the lengths are empty or sum
        to zero; all-zero lengths give L = 0, not the rank 1 a plain scan
        would reach at a zero threshold.
    """
    arr = np.sort(np.asarray(lengths, dtype=np.int64))[::-1]
    total = int(arr.sum())
    if total == 0:
        return 0, 0
    threshold = -(-total * percent // 100)
    running = np.cumsum(arr)
    idx = int(np.searchsorted(running, threshold, side='left'))
    return int(arr[idx]), idx + 1


def histogram_bin(length):
    """Histogram bin key for a single length."""
    for bound, step in _HISTOGRAM_STEPS:
        if length < bound:
            return length // step * step
    return length // _LARGEST_STEP * _LARGEST_STEP


def length_histogram(lengths):
    """Coarse length histogram as an ascending ``{bin: count}`` dict."""
    arr = np.asarray(lengths, dtype=np.int64)
    if arr.size == 0:
        return {}
    conds = [arr < bound for bound, _ in _HISTOGRAM_STEPS]
    steps = np.select(conds, [step for _, step in _HISTOGRAM_STEPS], default=_LARGEST_STEP)
    keys, counts = np.unique(arr // steps * steps, return_counts=True)
    return {int(b): int(c) for b, c in zip(keys, counts)}


def top_kmers(kmer_counts, k, limit=TOP_KMERS):
    """Most frequent k-mers as a ``{kmer: count}`` dict, most frequent first.

    Ties keep ascending packed-code order. Zero counts are dropped.
    """
    counts = np.asarray(kmer_counts)
    order = np.argsort(-counts, kind='stable')
    ret = {}
    for code in order[:limit]:
        if counts[code] == 0:
            break
        ret[decode_kmer(int(code), k)] = int(counts[code])
    return ret


def _fraction(num, den):
    return float(num) / den if den else 0.0


def finalize(acc, top=TOP_KMERS):
    """Build a ``StatsResult`` from a populated ``Accumulator``."""
    if acc.sequence_count == 0:
        return StatsResult.empty(acc.kmer_budget)

    comp = {s: int(c) for s, c in zip(BUCKET_SYMBOLS, acc.composition)}
    ungapped = {b: int(c) for b, c in zip(BASES, acc.ungapped_composition)}
    total = acc.total_length
    ungapped_total = int(acc.ungapped_composition.sum())

    scaffold_nx = {p: nx_lx(acc.scaffold_lengths, p) for p in NX_PERCENTS}
    contig_nx = {p: nx_lx(acc.contig_lengths, p) for p in NX_PERCENTS}

    return StatsResult(
        sequence_count=acc.sequence_count,
        total_length=total,
        ungapped_length=acc.ungapped_length,
        min_length=acc.min_length,
        max_length=acc.max_length,
        avg_length=_fraction(total, acc.sequence_count),
        base_counts=comp,
        base_frequencies={s: _fraction(c, total) for s, c in comp.items()},
        ungapped_base_frequencies={b: _fraction(c, ungapped_total) for b, c in ungapped.items()},
        gc_content=_fraction(comp['G'] + comp['C'], total),
        gc_content_ungapped=_fraction(ungapped['G'] + ungapped['C'], ungapped_total),
        ambiguous_base_count=acc.ambiguous_count,
        ambiguous_fraction=_fraction(acc.ambiguous_count, total),
        gap_count=acc.gap_count,
        n50=scaffold_nx[50][0],
        n90=scaffold_nx[90][0],
        l50=scaffold_nx[50][1],
        l90=scaffold_nx[90][1],
        contig_count=len(acc.contig_lengths),
        contig_n50=contig_nx[50][0],
        contig_n90=contig_nx[90][0],
        contig_l50=contig_nx[50][1],
        contig_l90=contig_nx[90][1],
        duplicate_sequence_count=acc.duplicate_count,
        duplicate_fraction=_fraction(acc.duplicate_count, acc.sequence_count),
        avg_shannon_entropy=_fraction(acc.entropy_sum, acc.sequence_count),
        length_histogram=length_histogram(acc.scaffold_lengths),
        top_kmers=top_kmers(acc.kmer_counts, acc.k, top),
        kmer_budget=acc.kmer_budget,
        kmers_counted=acc.kmers_counted,
    )
