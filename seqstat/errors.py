# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Exception hierarchy for Seqstat.

``NoMoreRecords`` is the only one that is not a failure: it marks a record
source that has been drained at a clean record boundary.
"""


class SeqstatError(Exception):
    """Base class for all Seqstat errors."""


class MalformedInput(SeqstatError, ValueError):
    """Input ended mid-record or a record is structurally invalid."""


class UnsupportedFormat(SeqstatError, ValueError):
    """File extension is not a recognised FASTA or FASTQ extension."""


class NoMoreRecords(SeqstatError, LookupError):
    """``next_record()`` was called on an exhausted record source."""


class EngineStateError(SeqstatError, RuntimeError):
    """An engine was driven through an invalid state transition."""
