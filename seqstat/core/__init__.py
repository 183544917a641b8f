# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Streaming statistics engine.

Typical use::

    from seqstat.core.engine import StatsEngine
    from seqstat.io.records import open_records

    with open_records('assembly.fa.gz') as source:
        result = StatsEngine(kmer_budget=100000).run(source)
"""

# k-mer length used for sampling; the k-mer table has 4**KMER_SIZE cells
KMER_SIZE = 5

# Number of most frequent k-mers reported
TOP_KMERS = 100

# Total k-mer occurrences counted before sampling stops
DEFAULT_KMER_BUDGET = 100000

# Coverage percentages reported as N/L statistics
NX_PERCENTS = (50, 90)
