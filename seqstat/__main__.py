#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Seqstat.
#
# Licensed under MIT License.

""" Main functionality of Seqstat

"""
import argparse
import errno
import os
import sys

from seqstat import __version__
from .cli import stats as cli_stats


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   stats          Compute QC statistics for a FASTA or FASTQ file
   test           Generate a command line for testing

'''


def generate_test_command(args):
    _base = os.path.dirname(os.path.abspath(__file__))
    _fapath = os.path.join(_base, 'data', 'example.fasta')
    if not os.path.exists(_fapath):
        raise FileNotFoundError(
            errno.ENOENT, os.strerror(errno.ENOENT), _fapath
        )
    print('seqstat stats %s' % _fapath, file=sys.stdout)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='seqstat',
        description='Streaming quality-control statistics for FASTA/FASTQ files',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for stats '''
    stats_parser = subparser.add_parser('stats',
        description='''Compute QC statistics for a FASTA or FASTQ file''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_stats.StatsOptions.add_arguments(stats_parser)
    stats_parser.set_defaults(func=cli_stats.run)

    ''' Parser for test '''
    test_parser = subparser.add_parser('test',
        description='''Print a test command''',
    )
    test_parser.set_defaults(func=generate_test_command)
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        empty_parser = argparse.ArgumentParser(
            description='Streaming quality-control statistics for FASTA/FASTQ files',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        return 1

    args = build_parser().parse_args(argv)
    if getattr(args, 'func', None) is None:
        build_parser().print_help(sys.stderr)
        return 1
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
