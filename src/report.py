"""
Builds pg_lsclusters-style rows from cluster metadata
"""
# encoding: utf-8

import logging
import os

from . import helpers
from .helpers import UNKNOWN
from .pgcommon import server_binary
from .types import ClusterInfo, ClusterRecord


def cluster_status(info: ClusterRecord, binaries_missing=False, start_conf=False):
    """
    online/down followed by optional recovery, start.conf value and binaries_missing flags
    """
    status = 'online' if info.get('running') else 'down'
    if info.get('recovery'):
        status += ',recovery'
    if start_conf and info.get('start'):
        status += ',' + info['start']
    if binaries_missing:
        status += ',binaries_missing'
    return status


def csv_log_path(logfile):
    if logfile.endswith('.log'):
        return logfile[: -len('.log')] + '.csv'
    return logfile + '.csv'


def log_destination(destination, logfile):
    """
    Substitute stderr and csvlog tokens in log_destination with file names.
    Only the first occurrence of each token is replaced, stderr first.
    """
    destination = destination.replace('stderr', logfile, 1)
    return destination.replace('csvlog', csv_log_path(logfile), 1)


class Report(object):
    """
    Accumulates display rows and raw records for selected clusters
    """

    def __init__(self, provider, conf, start_conf=False):
        self._provider = provider
        self._start_conf = start_conf
        self.install_root = conf.get('paths', 'install_root')
        self.log_directory = conf.get('defaults', 'log_directory')
        self.legacy_log_directory = conf.get('defaults', 'legacy_log_directory')
        self.legacy_before = conf.getint('defaults', 'legacy_log_directory_before')
        self.log_filename = conf.get('defaults', 'log_filename')
        self.default_destination = conf.get('defaults', 'log_destination')

        self.rows: list[ClusterInfo] = []
        self.records: list[ClusterRecord] = []

    def binaries_missing(self, version):
        return not os.path.exists(server_binary(self.install_root, version))

    def default_log_directory(self, version):
        if helpers.major_version(version) >= self.legacy_before:
            return self.log_directory
        return self.legacy_log_directory

    def cluster_log_file(self, version, info: ClusterRecord):
        config = info.get('config') or {}
        if helpers.config_bool(config.get('logging_collector')):
            log_dir = config.get('log_directory') or self.default_log_directory(version)
            log_file = config.get('log_filename') or self.log_filename
            return f'{log_dir}/{log_file}'
        return info.get('logfile') or UNKNOWN

    def cluster_log_destination(self, version, info: ClusterRecord):
        config = info.get('config') or {}
        destination = config.get('log_destination') or self.default_destination
        return log_destination(destination, self.cluster_log_file(version, info))

    def build_row(self, version, name, info: ClusterRecord) -> ClusterInfo:
        port = info.get('port')
        return ClusterInfo(
            version=version,
            cluster_name=name,
            port=str(port) if port is not None else UNKNOWN,
            state=cluster_status(info, self.binaries_missing(version), self._start_conf),
            owner=helpers.user_name(info.get('owneruid')),
            pgdata=info.get('pgdata') or UNKNOWN,
            log_file=self.cluster_log_destination(version, info),
        )

    def add(self, version, name):
        info = self._provider.cluster_info(version, name)
        logging.debug('%s/%s: %s', version, name, info)
        self.rows.append(self.build_row(version, name, info))
        self.records.append({**info, 'version': version, 'cluster': name})

    def collect(self, selection):
        for version, name in selection.pairs(self._provider):
            self.add(version, name)
        return self
