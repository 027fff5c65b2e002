"""
Cluster metadata provider. Knows the postgresql-common layout:
    <config_root>/<version>/<cluster>/postgresql.conf   cluster configuration
    <config_root>/<version>/<cluster>/start.conf        auto | manual | disabled
    <config_root>/<version>/<cluster>/pgdata            optional symlink to data directory
    <config_root>/<version>/<cluster>/log               optional symlink to server log
    <install_root>/<version>/bin/postgres               server binary
"""
# encoding: utf-8

import logging
import os
import re

from . import helpers
from .exceptions import ClusterConfigError
from .types import ClusterConfig, ClusterRecord

# Nesting limit for include directives, same as the server uses
MAX_INCLUDE_DEPTH = 10

_CONF_LINE_RE = re.compile(
    r"""
    ^\s*
    (?P<key>[A-Za-z_][\w.]*)
    \s*=?\s*
    (?P<value>'(?:[^'\\]|\\.|'')*'|[^\s#']*)
    \s*(?:\#.*)?$
    """,
    re.VERBOSE,
)
_INCLUDE_KEYS = ('include', 'include_if_exists', 'include_dir')


def _unquote(value):
    if len(value) >= 2 and value[0] == value[-1] == "'":
        value = value[1:-1].replace("''", "'")
        return re.sub(r'\\(.)', r'\1', value)
    return value


def _to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_conf_file(path, depth=0, config=None, missing_ok=False) -> ClusterConfig:
    """
    Read postgresql.conf-style file into dict following include directives.
    Later assignments override earlier ones.
    """
    if config is None:
        config = {}
    if depth > MAX_INCLUDE_DEPTH:
        raise ClusterConfigError(f'could not open configuration file "{path}": maximum nesting depth exceeded')
    logging.debug('reading %s', path)
    try:
        with open(path, 'r') as fobj:
            lines = fobj.readlines()
    except FileNotFoundError:
        if missing_ok:
            logging.debug('skipping missing configuration file "%s"', path)
            return config
        raise ClusterConfigError(f'configuration file "{path}" does not exist')
    except OSError as exc:
        raise ClusterConfigError(f'could not read configuration file "{path}": {exc.strerror}')

    base_dir = os.path.dirname(path)
    for lineno, line in enumerate(lines, start=1):
        if not line.strip() or line.lstrip().startswith('#'):
            continue
        match = _CONF_LINE_RE.match(line.rstrip('\n'))
        if not match:
            logging.warning('%s:%d: could not parse line, skipping', path, lineno)
            continue
        key = match.group('key').lower()
        value = _unquote(match.group('value'))
        if key in _INCLUDE_KEYS:
            target = os.path.join(base_dir, value)
            if key == 'include_dir':
                _parse_conf_dir(target, depth + 1, config)
            else:
                parse_conf_file(target, depth + 1, config, missing_ok=(key == 'include_if_exists'))
            continue
        config[key] = value
    return config


def _parse_conf_dir(path, depth, config):
    try:
        names = sorted(os.listdir(path))
    except OSError as exc:
        raise ClusterConfigError(f'could not open configuration directory "{path}": {exc.strerror}')
    for name in names:
        if name.startswith('.') or not name.endswith('.conf'):
            continue
        full = os.path.join(path, name)
        if os.path.isfile(full):
            parse_conf_file(full, depth, config)


def server_binary(install_root, version, binary='postgres'):
    return os.path.join(install_root, version, 'bin', binary)


class ClusterProvider(object):
    """
    Abstract source of cluster metadata
    """

    def get_versions(self) -> list[str]:
        raise NotImplementedError()

    def get_version_clusters(self, version) -> list[str]:
        raise NotImplementedError()

    def cluster_exists(self, version, name) -> bool:
        raise NotImplementedError()

    def cluster_info(self, version, name) -> ClusterRecord:
        raise NotImplementedError()


class PgCommon(ClusterProvider):
    """
    Reads cluster metadata from the local filesystem
    """

    def __init__(self, config):
        self.config_root = config.get('paths', 'config_root')
        self.install_root = config.get('paths', 'install_root')
        self.log_root = config.get('paths', 'log_root')
        self.socket_dir = config.get('paths', 'socket_dir')
        self.default_start = config.get('defaults', 'start')

    def _listdir(self, path):
        try:
            return os.listdir(path)
        except FileNotFoundError:
            logging.debug('%s does not exist', path)
            return []

    def binary_path(self, version, binary='postgres'):
        return server_binary(self.install_root, version, binary)

    def cluster_conf_dir(self, version, name):
        return os.path.join(self.config_root, version, name)

    def get_versions(self):
        """
        Versions having either configured clusters or installed server binaries
        """
        versions = set()
        for version in self._listdir(self.config_root):
            if helpers.is_version(version) and os.path.isdir(os.path.join(self.config_root, version)):
                versions.add(version)
        for version in self._listdir(self.install_root):
            if helpers.is_version(version) and os.path.exists(self.binary_path(version)):
                versions.add(version)
        return sorted(versions, key=helpers.version_key)

    def get_version_clusters(self, version):
        version_dir = os.path.join(self.config_root, version)
        return sorted(name for name in self._listdir(version_dir) if self.cluster_exists(version, name))

    def cluster_exists(self, version, name):
        return os.path.isfile(os.path.join(self.cluster_conf_dir(version, name), 'postgresql.conf'))

    def read_cluster_conf(self, version, name):
        return parse_conf_file(os.path.join(self.cluster_conf_dir(version, name), 'postgresql.conf'))

    def _socket_dir(self, config):
        dirs = config.get('unix_socket_directories') or config.get('unix_socket_directory')
        if dirs:
            first = dirs.split(',')[0].strip()
            if first:
                return first
        return self.socket_dir

    def _is_running(self, pgdata, port, socket_dir, config):
        """
        Trust the pid file when it is readable, otherwise try the server socket
        """
        pid_files = []
        if pgdata:
            pid_files.append(os.path.join(pgdata, 'postmaster.pid'))
        if config.get('external_pid_file'):
            pid_files.append(config['external_pid_file'])
        for pid_file in pid_files:
            pid = helpers.read_pidfile(pid_file)
            if pid is not None:
                logging.debug('%s: pid %d', pid_file, pid)
                return helpers.pid_alive(pid)
        if port is None:
            return False
        return helpers.socket_alive(os.path.join(socket_dir, f'.s.PGSQL.{port}'))

    @staticmethod
    def _in_recovery(version, pgdata):
        if not pgdata:
            return False
        signal_file = 'standby.signal' if helpers.major_version(version) >= 12 else 'recovery.conf'
        return os.path.exists(os.path.join(pgdata, signal_file))

    @staticmethod
    def _owner(pgdata):
        if not pgdata:
            return None, None
        try:
            st = os.stat(pgdata)
        except OSError as exc:
            logging.debug('could not stat %s: %s', pgdata, exc)
            return None, None
        return st.st_uid, st.st_gid

    def cluster_info(self, version, name):
        confdir = self.cluster_conf_dir(version, name)
        config = self.read_cluster_conf(version, name)

        port = _to_int(config.get('port'))
        pgdata = config.get('data_directory') or helpers.read_link(os.path.join(confdir, 'pgdata'))
        socket_dir = self._socket_dir(config)
        owneruid, ownergid = self._owner(pgdata)
        logfile = helpers.read_link(os.path.join(confdir, 'log'))
        if not logfile:
            logfile = os.path.join(self.log_root, f'postgresql-{version}-{name}.log')

        return {
            'config': config,
            'configdir': confdir,
            'port': port,
            'pgdata': pgdata,
            'owneruid': owneruid,
            'ownergid': ownergid,
            'socketdir': socket_dir,
            'running': self._is_running(pgdata, port, socket_dir, config),
            'recovery': self._in_recovery(version, pgdata),
            'start': helpers.read_first_word(os.path.join(confdir, 'start.conf')) or self.default_start,
            'logfile': logfile,
        }
