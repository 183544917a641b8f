# -*- coding: utf-8 -*-

# This file is part of Seqstat.
#
# Licensed under MIT License.

""" Seqstat stats

"""
import logging as lg
import os
import sys

from . import SubcommandOptions, configure_logging
from .console import Stopwatch
from ..core.engine import StatsEngine
from ..core.reporter import output_tables, summary_rows, write_json
from ..core.shard import ShardedEngine
from ..errors import SeqstatError
from ..io.records import detect_format, open_records


class StatsOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - infile:
            positional: True
            help: Path to a FASTA (.fa, .fasta, .fna, .fas) or FASTQ (.fq,
                  .fastq) file, optionally gzipped (.gz).
        - kmer_budget:
            type: int
            default: 100000
            help: Total number of 5-mer occurrences to count. Records read
                  first get priority; sampling stops once the budget is
                  spent. Use 0 to disable k-mer sampling.
        - canonical:
            action: store_true
            help: Count a sequence and its reverse complement as duplicates
                  of each other.
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence (most) output.
        - verbose:
            action: store_true
            help: Show detailed progress and timing.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: argparse.FileType('w')
            help: Log output to this file.
        - outfile:
            help: Write the JSON report to this file.
        - outdir:
            help: Write TSV tables (summary, length histogram, top k-mers)
                  to this directory.
        - exp_tag:
            default: seqstat
            help: Prefix for TSV table file names.
    - Performance Options:
        - ncpu:
            type: int
            default: 1
            help: Number of shards processed in parallel. With more than one
                  shard the k-mer budget is split between shards, which
                  changes which k-mers are sampled.
        - chunk_size:
            type: int
            default: 1000
            help: Records handed to a shard at a time.
    """

    def __init__(self, args):
        super().__init__(args)
        if self.logfile is None:
            self.logfile = sys.stderr


def make_engine(opts):
    """Sequential engine for one CPU, sharded engine otherwise."""
    if opts.ncpu > 1:
        return ShardedEngine(opts.ncpu, kmer_budget=opts.kmer_budget,
                             strand_aware=opts.canonical, chunk_size=opts.chunk_size)
    return StatsEngine(kmer_budget=opts.kmer_budget, strand_aware=opts.canonical)


def run(args):
    """Compute statistics for one file and report them.

    Returns:
        Process exit status.
    """
    opts = StatsOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    stopwatch = Stopwatch()

    console.banner(opts.version)

    try:
        fmt = detect_format(opts.infile)
        if opts.kmer_budget < 0:
            raise ValueError(f'--kmer_budget must be >= 0, got {opts.kmer_budget}')
        if opts.ncpu < 1:
            raise ValueError(f'--ncpu must be >= 1, got {opts.ncpu}')
        if opts.chunk_size < 1:
            raise ValueError(f'--chunk_size must be >= 1, got {opts.chunk_size}')
    except ValueError as exc:
        lg.error(str(exc))
        console.error(exc)
        return 1

    console.section('Input')
    console.item('File', os.path.basename(opts.infile))
    console.item('Format', fmt.upper())
    console.item('K-mer budget', f'{opts.kmer_budget:,}')
    if opts.ncpu > 1:
        console.item('Shards', opts.ncpu)
    console.blank()

    stopwatch.start('Scan')
    try:
        with open_records(opts.infile) as source:
            result = make_engine(opts).run(source)
            console.verbose(f'Read {source.records_read:,} records from {source.name}')
    except (SeqstatError, OSError) as exc:
        lg.error(f'{type(exc).__name__}: {exc}')
        console.error(exc)
        return 1
    stopwatch.stop()
    lg.info(f'Scanned {result.sequence_count:,} records')

    if result.sequence_count == 0:
        console.status('No sequence found in file.')
        return 0

    console.section('Summary')
    console.metrics(summary_rows(result))
    console.blank()

    stopwatch.start('Report')
    written = []
    try:
        if opts.outfile:
            write_json(result, opts.outfile)
            written.append(opts.outfile)
        if opts.outdir:
            written.extend(output_tables(result, opts.outdir, opts.exp_tag))
    except OSError as exc:
        lg.error(f'Failed to write report: {exc}')
        console.error(exc)
        return 1
    stopwatch.stop()

    if written:
        console.section('Output')
        for path in written:
            console.output_file(path)
        console.blank()

    console.timing_table(stopwatch)
    lg.info('seqstat stats complete ({:.1f}s)'.format(stopwatch.total))
    return 0
