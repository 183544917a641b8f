# This file is part of Seqstat.
#
# Licensed under MIT License.

"""Report generation for Seqstat.

Functions accept a finished ``StatsResult`` and only format or write it;
none of them recompute statistics.
"""

import json
import os

import pandas as pd

from .tables import BASES, BUCKET_SYMBOLS

# Fractional values are always written with this many decimals
FLOAT_DECIMALS = 8


def to_dict(result):
    """Structured export of a result, keyed as in the JSON report.

    Ints stay ints and fractions stay floats; ordering is stable.
    """
    return {
        'sequenceCount': result.sequence_count,
        'totalLength': result.total_length,
        'ungappedLength': result.ungapped_length,
        'minLength': result.min_length,
        'maxLength': result.max_length,
        'avgLength': result.avg_length,
        'gcContent': result.gc_content,
        'gcContentUngapped': result.gc_content_ungapped,
        'baseFrequencies': {s: result.base_frequencies.get(s, 0.0) for s in BUCKET_SYMBOLS},
        'ungappedBaseFrequencies': {b: result.ungapped_base_frequencies.get(b, 0.0) for b in BASES},
        'n50': result.n50,
        'n90': result.n90,
        'l50': result.l50,
        'l90': result.l90,
        'contigCount': result.contig_count,
        'contigN50': result.contig_n50,
        'contigN90': result.contig_n90,
        'contigL50': result.contig_l50,
        'contigL90': result.contig_l90,
        'duplicateFraction': result.duplicate_fraction,
        'duplicateSequenceCount': result.duplicate_sequence_count,
        'ambiguousBaseCount': result.ambiguous_base_count,
        'ambiguousFraction': result.ambiguous_fraction,
        'gapCount': result.gap_count,
        'avgShannonEntropy': result.avg_shannon_entropy,
        'lengthHistogram': {str(k): v for k, v in result.length_histogram.items()},
        'topKmers': dict(result.top_kmers),
        'kmerBudget': result.kmer_budget,
        'kmersCounted': result.kmers_counted,
    }


def _encode(value, indent, level):
    pad = ' ' * (indent * (level + 1))
    if isinstance(value, dict):
        if not value:
            return '{}'
        items = [f'{pad}{json.dumps(str(k))}: {_encode(v, indent, level + 1)}'
                 for k, v in value.items()]
        return '{\n' + ',\n'.join(items) + '\n' + ' ' * (indent * level) + '}'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return f'{value:.{FLOAT_DECIMALS}f}'
    return json.dumps(value)


def render_json(result, indent=2):
    """JSON text with every fractional value fixed to 8 decimal places."""
    return _encode(to_dict(result), indent, 0) + '\n'


def write_json(result, filename):
    with open(filename, 'w') as outh:
        outh.write(render_json(result))


def summary_rows(result):
    """``(label, value)`` pairs for the human-readable summary."""
    freqs = ', '.join(f'{s}={result.base_frequencies.get(s, 0.0):.4f}' for s in BUCKET_SYMBOLS)
    rows = [
        ('Sequences', f'{result.sequence_count:,}'),
        ('Total length', f'{result.total_length:,}'),
        ('Ungapped length', f'{result.ungapped_length:,}'),
        ('Min length', f'{result.min_length:,}'),
        ('Max length', f'{result.max_length:,}'),
        ('Avg length', f'{result.avg_length:.2f}'),
        ('GC content', f'{result.gc_content:.4f} (ungapped {result.gc_content_ungapped:.4f})'),
        ('Base frequencies', freqs),
        ('N50 / L50', f'{result.n50:,} / {result.l50:,}'),
        ('N90 / L90', f'{result.n90:,} / {result.l90:,}'),
        ('Contigs', f'{result.contig_count:,}'),
        ('Contig N50 / L50', f'{result.contig_n50:,} / {result.contig_l50:,}'),
        ('Contig N90 / L90', f'{result.contig_n90:,} / {result.contig_l90:,}'),
        ('Ambiguous bases', f'{result.ambiguous_base_count:,} ({result.ambiguous_fraction:.4%}) '
                            f'in {result.gap_count:,} gaps'),
        ('Duplicates', f'{result.duplicate_sequence_count:,} ({result.duplicate_fraction:.4%})'),
        ('Avg Shannon entropy', f'{result.avg_shannon_entropy:.4f}'),
        ('K-mers counted', f'{result.kmers_counted:,} of {result.kmer_budget:,}'),
    ]
    if result.top_kmers:
        shown = list(result.top_kmers.items())[:5]
        rows.append(('Top k-mers', ', '.join(f'{k}={c:,}' for k, c in shown)))
    return rows


def output_tables(result, outdir, exp_tag):
    """Write summary, length histogram and top k-mer TSV tables.

    Returns:
        List of written file paths.
    """
    os.makedirs(outdir, exist_ok=True)

    def _path(suffix):
        return os.path.join(outdir, f'{exp_tag}-{suffix}')

    flat = {k: v for k, v in to_dict(result).items() if not isinstance(v, dict)}
    for s, f in result.base_frequencies.items():
        flat[f'baseFrequency{s}'] = f
    _summary = pd.DataFrame({'metric': list(flat.keys()), 'value': list(flat.values())})

    _hist = pd.DataFrame({
        'bin': list(result.length_histogram.keys()),
        'count': list(result.length_histogram.values()),
    })
    _kmers = pd.DataFrame({
        'kmer': list(result.top_kmers.keys()),
        'count': list(result.top_kmers.values()),
    })

    written = []
    for suffix, df in (('summary.tsv', _summary),
                       ('length_histogram.tsv', _hist),
                       ('top_kmers.tsv', _kmers)):
        fn = _path(suffix)
        df.to_csv(fn, sep='\t', index=False, float_format=f'%.{FLOAT_DECIMALS}f')
        written.append(fn)
    return written
