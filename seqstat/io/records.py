# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Streaming FASTA/FASTQ record sources.

A source yields ``Record(identifier, residues)`` tuples one at a time,
buffering at most one record ahead. Sources are single-pass and are
closed exactly once, normally through ``with``::

    with open_records('reads.fq.gz') as source:
        for record in source:
            ...
"""

import gzip
import logging as lg
import os
import zlib
from abc import ABC, abstractmethod
from collections import namedtuple

from ..errors import MalformedInput, NoMoreRecords, UnsupportedFormat

Record = namedtuple('Record', ['identifier', 'residues'])

FASTA_EXTENSIONS = ('.fa', '.fasta', '.fna', '.fas')
FASTQ_EXTENSIONS = ('.fq', '.fastq')


def detect_format(path):
    """Infer ``'fasta'`` or ``'fastq'`` from a file name.

    A trailing ``.gz`` is ignored and matching is case-insensitive.

    Raises:
        UnsupportedFormat: For any other extension.
    """
    name = os.path.basename(str(path)).lower()
    if name.endswith('.gz'):
        name = name[:-3]
    ext = os.path.splitext(name)[1]
    if ext in FASTA_EXTENSIONS:
        return 'fasta'
    if ext in FASTQ_EXTENSIONS:
        return 'fastq'
    raise UnsupportedFormat(
        f'Unsupported file format: {path} (expected one of '
        f'{", ".join(FASTA_EXTENSIONS + FASTQ_EXTENSIONS)}, optionally gzipped)'
    )


def open_maybe_gzip(path, mode='rt'):
    p = str(path)
    if p.lower().endswith('.gz'):
        return gzip.open(p, mode, encoding='utf-8', errors='replace')
    return open(p, mode, encoding='utf-8', errors='replace')


class RecordSource(ABC):
    """Forward-only source of ``Record`` objects over an open text handle.

    Subclasses implement ``_parse`` as a generator over the handle's
    lines. Errors raised while parsing surface from ``has_next`` /
    ``next_record`` when the offending record is pulled. A compressed
    stream that ends early or is corrupt surfaces as ``MalformedInput``.
    """

    def __init__(self, handle, name=None):
        self.name = name or getattr(handle, 'name', '<stream>')
        self._handle = handle
        self._records = self._parse(handle)
        self._buffered = None
        self._exhausted = False
        self._closed = False
        self.records_read = 0

    @abstractmethod
    def _parse(self, handle):
        """Yield ``Record`` objects from ``handle``."""

    def has_next(self):
        if self._buffered is None and not self._exhausted:
            try:
                self._buffered = next(self._records, None)
            except (EOFError, zlib.error, gzip.BadGzipFile) as exc:
                self._exhausted = True
                raise MalformedInput(f'Input ended unexpectedly in {self.name}: {exc}') from exc
            if self._buffered is None:
                self._exhausted = True
        return self._buffered is not None

    def next_record(self):
        """Return the next record.

        Raises:
            NoMoreRecords: The source is exhausted.
            MalformedInput: The next record is truncated or invalid.
        """
        if not self.has_next():
            raise NoMoreRecords(f'No more records in {self.name}')
        record, self._buffered = self._buffered, None
        self.records_read += 1
        return record

    def __iter__(self):
        return self

    def __next__(self):
        if not self.has_next():
            raise StopIteration
        return self.next_record()

    def close(self):
        """Release the underlying handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self._handle.close()
        except OSError as exc:
            lg.warning(f'Failed to close {self.name}: {exc}')

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class FastaSource(RecordSource):
    """``>``-delimited records with bodies spread over any number of lines."""

    def _parse(self, handle):
        identifier = None
        chunks = []
        for line in handle:
            if line.startswith('>'):
                if identifier is not None:
                    yield Record(identifier, ''.join(chunks))
                identifier = line[1:].strip()
                chunks = []
            elif identifier is not None:
                chunks.append(line.strip())
        if identifier is not None:
            yield Record(identifier, ''.join(chunks))


class FastqSource(RecordSource):
    """``@``-delimited 4-line records. Quality lines are read and discarded."""

    def _parse(self, handle):
        lines = iter(handle)
        for line in lines:
            if not line.startswith('@'):
                if line.strip():
                    lg.debug(f'Skipping line outside FASTQ record: {line[:80]!r}')
                continue
            identifier = line[1:].strip()
            seq = next(lines, None)
            if seq is None:
                raise MalformedInput(f'FASTQ record {identifier!r} has no sequence line')
            sep = next(lines, None)
            if sep is None:
                raise MalformedInput(f'FASTQ record {identifier!r} has no separator line')
            if not sep.startswith('+'):
                raise MalformedInput(
                    f'FASTQ record {identifier!r}: separator line does not start with "+": {sep[:80]!r}'
                )
            if next(lines, None) is None:
                raise MalformedInput(f'FASTQ record {identifier!r} has no quality line')
            yield Record(identifier, seq.strip())


_SOURCES = {
    'fasta': FastaSource,
    'fastq': FastqSource,
}


def open_records(path):
    """Open ``path`` as a ``RecordSource`` chosen by its extension.

    The extension is checked before the file is opened.

    Raises:
        UnsupportedFormat: Unrecognised extension.
        OSError: The file cannot be opened.
    """
    fmt = detect_format(path)
    lg.debug(f'Opening {path} as {fmt}')
    return _SOURCES[fmt](open_maybe_gzip(path), name=str(path))
