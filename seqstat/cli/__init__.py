# This file is part of Seqstat.
#
# Licensed under MIT License.

import argparse
import logging
from collections import OrderedDict

import yaml

from .console import Console

# Types a YAML option block may name; looked up instead of eval()
_SAFE_TYPES = {
    'int': int,
    'float': float,
    'str': str,
    "argparse.FileType('w')": argparse.FileType('w'),
}


class SubcommandOptions:
    """Options for one subcommand, declared as a YAML block in ``OPTS``.

    Each top-level item is an argument group; each entry in a group is an
    argument name mapped to ``add_argument`` keywords. ``positional: True``
    makes a positional argument, ``hide: True`` drops it.
    """

    OPTS = """
    - Input Options:
        - infile:
            positional: True
            help: Input file.
    """

    def __init__(self, args):
        self.opt_names, self.opt_groups = self._parse_yaml_opts(self.OPTS)
        for k, v in vars(args).items():
            setattr(self, k, v)

    @classmethod
    def add_arguments(cls, parser):
        _, opt_groups = cls._parse_yaml_opts(cls.OPTS)
        for group_name, args in opt_groups.items():
            argparse_grp = parser.add_argument_group(group_name, '')
            for arg_name, arg_d in args.items():
                _d = dict(arg_d)
                if _d.pop('hide', False):
                    continue
                if _d.pop('positional', False):
                    _arg_name = arg_name
                else:
                    _arg_name = f'--{arg_name}'
                if 'type' in _d:
                    if _d['type'] not in _SAFE_TYPES:
                        raise ValueError(
                            f"Unsupported type '{_d['type']}' for option '{arg_name}'. "
                            f'Allowed: {list(_SAFE_TYPES)}'
                        )
                    _d['type'] = _SAFE_TYPES[_d['type']]
                argparse_grp.add_argument(_arg_name, **_d)

    @staticmethod
    def _parse_yaml_opts(opts_yaml):
        _opt_names = []
        _opt_groups = OrderedDict()
        for grp in yaml.safe_load(opts_yaml):
            grp_name, args = next(iter(grp.items()))
            _opt_groups[grp_name] = OrderedDict()
            for arg in args:
                arg_name, d = next(iter(arg.items()))
                _opt_groups[grp_name][arg_name] = d
                _opt_names.append(arg_name)
        return _opt_names, _opt_groups

    def __str__(self):
        ret = []
        if hasattr(self, 'version'):
            ret.append('{:34}{}'.format('Version:', self.version))
        for group_name, args in self.opt_groups.items():
            ret.append(group_name)
            for arg_name in args:
                v = getattr(self, arg_name, 'Not set')
                v = v.name if hasattr(v, 'name') else v
                ret.append('    {:30}{}'.format(arg_name + ':', v))
        return '\n'.join(ret)


def configure_logging(opts):
    """Configure stderr logging and return a Console for stdout.

    Args:
        opts: SubcommandOptions; reads ``quiet``, ``verbose``, ``debug``
              and ``logfile``.
    """
    _quiet = getattr(opts, 'quiet', False)
    _verbose = getattr(opts, 'verbose', False)
    _debug = getattr(opts, 'debug', False)

    if _quiet:
        console_level = Console.QUIET
    elif _debug:
        console_level = Console.DEBUG
    elif _verbose:
        console_level = Console.VERBOSE
    else:
        console_level = Console.NORMAL

    if _debug:
        loglev = logging.DEBUG
        logfmt = '%(asctime)s %(levelname)-8s %(message)-60s (%(funcName)s in %(filename)s:%(lineno)d)'
    elif _verbose:
        loglev = logging.INFO
        logfmt = '%(asctime)s %(levelname)-8s %(message)s'
    else:
        loglev = logging.WARNING
        logfmt = '%(asctime)s %(levelname)-8s %(message)s'

    logging.basicConfig(level=loglev, format=logfmt, datefmt='%Y-%m-%d %H:%M:%S',
                        stream=getattr(opts, 'logfile', None))

    return Console(level=console_level)
