# -*- coding: utf-8 -*-

# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Frozen result of one statistics run."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .tables import BASES, BUCKET_SYMBOLS

_MAPPING_FIELDS = ('base_counts', 'base_frequencies', 'ungapped_base_frequencies',
                   'length_histogram', 'top_kmers')


@dataclass(frozen=True)
class StatsResult:
    """Immutable snapshot of a finished run.

    Mapping fields are copied into read-only ``MappingProxyType`` views on
    construction. Fractions are 0.0 whenever their denominator is zero.
    """
    sequence_count: int
    total_length: int
    ungapped_length: int
    min_length: int
    max_length: int
    avg_length: float

    base_counts: Mapping                 # {symbol: count} for A C G T N
    base_frequencies: Mapping            # {symbol: fraction of total_length}
    ungapped_base_frequencies: Mapping   # {base: fraction of ungapped_length}
    gc_content: float
    gc_content_ungapped: float

    ambiguous_base_count: int
    ambiguous_fraction: float
    gap_count: int

    n50: int
    n90: int
    l50: int
    l90: int
    contig_count: int
    contig_n50: int
    contig_n90: int
    contig_l50: int
    contig_l90: int

    duplicate_sequence_count: int
    duplicate_fraction: float
    avg_shannon_entropy: float

    length_histogram: Mapping = field(default_factory=dict)   # {bin: count}, ascending
    top_kmers: Mapping = field(default_factory=dict)          # {kmer: count}, descending
    kmer_budget: int = 0
    kmers_counted: int = 0

    def __post_init__(self):
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def empty(cls, kmer_budget=0):
        """Result for an input that yielded no records."""
        return cls(
            sequence_count=0,
            total_length=0,
            ungapped_length=0,
            min_length=0,
            max_length=0,
            avg_length=0.0,
            base_counts={s: 0 for s in BUCKET_SYMBOLS},
            base_frequencies={s: 0.0 for s in BUCKET_SYMBOLS},
            ungapped_base_frequencies={b: 0.0 for b in BASES},
            gc_content=0.0,
            gc_content_ungapped=0.0,
            ambiguous_base_count=0,
            ambiguous_fraction=0.0,
            gap_count=0,
            n50=0, n90=0, l50=0, l90=0,
            contig_count=0,
            contig_n50=0, contig_n90=0, contig_l50=0, contig_l90=0,
            duplicate_sequence_count=0,
            duplicate_fraction=0.0,
            avg_shannon_entropy=0.0,
            kmer_budget=kmer_budget,
        )
