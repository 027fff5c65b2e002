#!/usr/bin/env python
# -*- coding: utf-8 -*-

import contextlib
import io
import logging
import os
import shlex
import socket
import subprocess
from configparser import RawConfigParser

from pglsclusters import cli, read_config

LOG = logging.getLogger('helpers')

TOOL_CONFIG = 'pglsclusters.conf'

PATHS = {
    'config_root': 'etc/postgresql',
    'install_root': 'usr/lib/postgresql',
    'log_root': 'var/log/postgresql',
    'socket_dir': 'var/run/postgresql',
}


class RunResult(object):
    def __init__(self, code, stdout, stderr):
        self.code = code
        self.stdout = stdout
        self.stderr = stderr


def host_path(root, key):
    return os.path.join(root, PATHS[key])


def write_tool_config(root):
    """
    Point pglsclusters at directories inside root
    """
    config = RawConfigParser()
    config.add_section('global')
    config.set('global', 'log_level', 'warning')
    config.add_section('paths')
    for key in PATHS:
        path = host_path(root, key)
        os.makedirs(path, exist_ok=True)
        config.set('paths', key, path)
    filename = os.path.join(root, TOOL_CONFIG)
    with open(filename, 'w') as fobj:
        config.write(fobj)
    return filename


def read_tool_config(root):
    return read_config(filename=os.path.join(root, TOOL_CONFIG))


def substitute(context, text):
    return text.replace('{root}', context.root).replace('{user}', context.user)


def _conf_value(value):
    if isinstance(value, bool):
        return 'on' if value else 'off'
    if isinstance(value, int):
        return str(value)
    return "'{value}'".format(value=str(value).replace("'", "''"))


def write_conf(path, values):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, 'w') as fobj:
        fobj.write('# generated by tests\n')
        for key, value in values.items():
            fobj.write('{key} = {value}\n'.format(key=key, value=_conf_value(value)))


def install_binaries(root, version):
    bindir = os.path.join(host_path(root, 'install_root'), str(version), 'bin')
    os.makedirs(bindir, exist_ok=True)
    with open(os.path.join(bindir, 'postgres'), 'w') as fobj:
        fobj.write('#!/bin/sh\n')
    os.chmod(os.path.join(bindir, 'postgres'), 0o755)


def remove_binaries(root, version):
    path = os.path.join(host_path(root, 'install_root'), str(version), 'bin', 'postgres')
    if os.path.exists(path):
        os.unlink(path)


def dead_pid():
    """
    Pid of a child that has already been reaped
    """
    proc = subprocess.Popen(['true'])
    proc.wait()
    return proc.pid


def write_pidfile(path, pid, pgdata):
    with open(path, 'w') as fobj:
        fobj.write('{pid}\n{pgdata}\n'.format(pid=pid, pgdata=pgdata))


def server_socket(root, port, listening=True):
    """
    Bind a unix socket where the server of this port would listen.
    A socket closed right away leaves a stale file behind.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.bind(os.path.join(host_path(root, 'socket_dir'), '.s.PGSQL.{port}'.format(port=port)))
    if not listening:
        sock.close()
        return None
    sock.listen(1)
    return sock


def create_cluster(root, version, name, spec):
    """
    Lay out configuration and data directory of one cluster.
    Known keys: port, running, recovery, start, config, conf_d, data_directory, log_link,
    pid_file (stale), external_pid_file, socket (listening, stale).
    Returns sockets left open for the cluster.
    """
    spec = spec or {}
    version = str(version)
    confdir = os.path.join(host_path(root, 'config_root'), version, name)
    pgdata = os.path.join(root, 'var/lib/postgresql', version, name)
    os.makedirs(pgdata, exist_ok=True)

    values = {}
    if spec.get('data_directory', True):
        values['data_directory'] = pgdata
    if 'port' in spec:
        values['port'] = int(spec['port'])
    if spec.get('external_pid_file'):
        values['external_pid_file'] = os.path.join(
            host_path(root, 'socket_dir'), '{version}-{name}.pid'.format(version=version, name=name)
        )
        write_pidfile(values['external_pid_file'], os.getpid(), pgdata)
    values.update(spec.get('config', {}))
    if spec.get('conf_d'):
        values['include_dir'] = 'conf.d'
        for filename, extra in spec['conf_d'].items():
            write_conf(os.path.join(confdir, 'conf.d', filename), extra)
    write_conf(os.path.join(confdir, 'postgresql.conf'), values)

    if 'start' in spec:
        with open(os.path.join(confdir, 'start.conf'), 'w') as fobj:
            fobj.write('# Automatic startup configuration\n{start}\n'.format(start=spec['start']))
    if spec.get('log_link'):
        os.symlink(spec['log_link'].replace('{root}', root), os.path.join(confdir, 'log'))
    if spec.get('running'):
        write_pidfile(os.path.join(pgdata, 'postmaster.pid'), os.getpid(), pgdata)
    if spec.get('pid_file') == 'stale':
        write_pidfile(os.path.join(pgdata, 'postmaster.pid'), dead_pid(), pgdata)
    if spec.get('recovery'):
        signal_file = 'standby.signal' if int(version.split('.')[0]) >= 12 else 'recovery.conf'
        with open(os.path.join(pgdata, signal_file), 'w') as fobj:
            fobj.write('')

    sockets = []
    if spec.get('socket'):
        sock = server_socket(root, spec['port'], listening=spec['socket'] == 'listening')
        if sock is not None:
            sockets.append(sock)
    return sockets


def run_cli(context, args, trailing_newline=False):
    """
    Run command line entry point in-process and capture everything it prints.
    Root logger is emptied for the run, so init_logging installs its own
    stderr handler and log lines end up in the captured stderr.
    """
    argv = ['--config', context.config_file] + shlex.split(args or '')
    if trailing_newline:
        argv[-1] += '\n'
    stdout = io.StringIO()
    stderr = io.StringIO()
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    for handler in saved_handlers:
        root_logger.removeHandler(handler)
    code = 0
    try:
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            cli.entry(argv)
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 1
    finally:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        for handler in saved_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(saved_level)
    LOG.debug('pglsclusters %r exited with %s', argv, code)
    return RunResult(code, stdout.getvalue(), stderr.getvalue())


def is_dict_subset_of(left, right):
    for key, value in left.items():
        if key not in right:
            return False, f'missing "{key}", expected "{value}"'
        if isinstance(value, dict) and isinstance(right[key], dict):
            is_subset, err = is_dict_subset_of(value, right[key])
            if not is_subset:
                return False, f'{key}: {err}'
            continue
        if value != right[key]:
            message = f'key "{key}" has value "{right[key]}" expected "{value}"'
            return False, message
    return True, None
