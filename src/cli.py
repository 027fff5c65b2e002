# coding: utf-8
"""
Command line interface:
    - option parsing
    - version/cluster selection
    - table, JSON or YAML output
"""
import argparse
import logging
import sys

from . import read_config, init_logging
from . import helpers
from .exceptions import LsClustersException, InvalidVersion, InvalidClusterName, ClusterNotFound
from .output import render_json, render_text, render_yaml
from .pgcommon import PgCommon
from .report import Report
from .types import Selection


def entry(argv=None):
    """
    Entry point.
    """
    opts = parse_args(argv)
    conf = read_config(filename=opts.config_file, options=opts)
    init_logging(conf)
    try:
        show_clusters(opts, conf)
    except (KeyboardInterrupt, EOFError):
        logging.error('abort')
        sys.exit(1)
    except (LsClustersException, RuntimeError) as err:
        logging.error(err)
        sys.exit(1)
    except Exception as exc:
        logging.exception(exc)
        sys.exit(1)


def resolve_selection(args, provider) -> Selection:
    """
    Turn positional arguments into Selection:
        <version>[-/]<cluster>, <version> [<cluster>] or nothing at all
    """
    if not args:
        return Selection()

    match = helpers.VERSION_CLUSTER_RE.match(args[0]) if len(args) == 1 else None
    if match:
        selection = Selection(version=match.group(1), cluster=match.group(2))
    else:
        version = args[0]
        if not helpers.is_version(version):
            raise InvalidVersion(version)
        selection = Selection(version=version)
        if len(args) > 1:
            if not helpers.is_cluster_name(args[1]):
                raise InvalidClusterName(args[1])
            selection.cluster = args[1]

    if selection.cluster is not None and not provider.cluster_exists(selection.version, selection.cluster):
        raise ClusterNotFound(selection.version, selection.cluster)
    return selection


def show_clusters(opts, conf, provider=None, stream=None):
    """
    Collect all selected clusters first, then print them
    """
    if provider is None:
        provider = PgCommon(conf)
    selection = resolve_selection(opts.selection, provider)
    logging.debug('selected version %s, cluster %s', selection.version or 'all', selection.cluster or 'all')

    report = Report(provider, conf, start_conf=opts.start_conf).collect(selection)
    if opts.json:
        render_json(report.records, stream)
    elif opts.yaml:
        render_yaml(report.records, stream)
    else:
        render_text(report.rows, header=not opts.no_header, stream=stream)
    return report


def parse_args(argv=None):
    """
    Parse options. -h is taken by --no-header, so help is only available as --help
    """
    arg = argparse.ArgumentParser(
        prog='pglsclusters',
        description="""
        Show information about all PostgreSQL clusters
        """,
        add_help=False,
    )
    arg.add_argument('--help', action='help', help='show this help message and exit')
    arg.add_argument(
        '-h',
        '--no-header',
        help='omit column headers in output',
        action='store_true',
        default=False,
    )
    fmt = arg.add_mutually_exclusive_group()
    fmt.add_argument(
        '-j',
        '--json',
        help='show output in json format',
        action='store_true',
        default=False,
    )
    fmt.add_argument(
        '-y',
        '--yaml',
        help='show output in yaml format',
        action='store_true',
        default=False,
    )
    arg.add_argument(
        '-s',
        '--start-conf',
        help='include start.conf information in status column',
        action='store_true',
        default=False,
    )
    arg.add_argument(
        '--config',
        dest='config_file',
        type=str,
        metavar='<path>',
        default=None,
        help='path to pglsclusters config file',
    )
    arg.add_argument(
        '--log-level',
        dest='log_level',
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        default=None,
        help='override config log level',
    )
    arg.add_argument(
        'selection',
        metavar='[version [cluster]]',
        nargs='*',
        help='version and optionally cluster, also accepted as <version>-<cluster> or <version>/<cluster>',
    )

    opts = arg.parse_intermixed_args(argv)
    if len(opts.selection) > 2:
        arg.error('too many arguments')
    return opts
