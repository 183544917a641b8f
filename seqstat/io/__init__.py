# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Record sources for FASTA and FASTQ files."""

from .records import (  # noqa: F401
    FastaSource,
    FastqSource,
    Record,
    RecordSource,
    detect_format,
    open_records,
)
