# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Residue classification tables.

Both tables are indexed by byte value and built once at import:

- ``BUCKET`` maps a byte to its composition bucket (A=0, C=1, G=2, T=3,
  anything else 4).
- ``BASE_CODE`` maps a byte to its 2-bit code for A/C/G/T, -1 otherwise.

Lookups are case-insensitive.
"""

import numpy as np

BUCKET_SYMBOLS = ('A', 'C', 'G', 'T', 'N')
BASES = 'ACGT'
N_BUCKET = 4

BUCKET = np.full(256, N_BUCKET, dtype=np.uint8)
BASE_CODE = np.full(256, -1, dtype=np.int8)
for _code, _base in enumerate(BASES):
    for _byte in (ord(_base), ord(_base.lower())):
        BUCKET[_byte] = _code
        BASE_CODE[_byte] = _code
BUCKET.setflags(write=False)
BASE_CODE.setflags(write=False)

_COMPLEMENT = str.maketrans('ACGTacgt', 'TGCAtgca')


def encode_kmer(kmer):
    """Pack an A/C/G/T string into an integer, 2 bits per base."""
    val = 0
    for base in kmer.upper():
        code = BASES.find(base)
        if code < 0:
            raise ValueError(f'Cannot encode non-ACGT symbol {base!r}')
        val = (val << 2) | code
    return val


def decode_kmer(val, k):
    """Unpack a 2-bit packed integer into its k-letter string."""
    bases = []
    for _ in range(k):
        bases.append(BASES[val & 3])
        val >>= 2
    return ''.join(reversed(bases))


def reverse_complement(seq):
    """Reverse complement; symbols other than A/C/G/T are kept as-is."""
    return seq.translate(_COMPLEMENT)[::-1]


def canonical(seq):
    """Lexicographically smaller of ``seq`` and its reverse complement."""
    rc = reverse_complement(seq)
    return rc if rc < seq else seq
