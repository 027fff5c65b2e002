"""
Some helper functions and decorators
"""

# encoding: utf-8

import logging
import os
import pwd
import re
import socket
import traceback
from functools import wraps

VERSION_RE = re.compile(r'^\d+(?:\.\d+)?\Z')
CLUSTER_NAME_RE = re.compile(r'^[-.\w]+\Z')
VERSION_CLUSTER_RE = re.compile(r'^(\d+(?:\.\d+)?)[-/]([-.\w]+)\Z')

UNKNOWN = 'unknown'

_TRUE_WORDS = ('on', 'true', 'yes', '1')


def is_version(value):
    return bool(VERSION_RE.match(value))


def is_cluster_name(value):
    return bool(CLUSTER_NAME_RE.match(value))


def version_key(version):
    """
    Sort key for numeric versions: 9.6 < 10 < 13
    """
    return tuple(int(part) for part in version.split('.'))


def major_version(version):
    return version_key(version)[0]


def config_bool(value):
    """
    Interpret postgresql.conf boolean: on/true/yes/1 or an unambiguous prefix
    """
    if value is None:
        return False
    value = str(value).strip().lower()
    # "o" may be either on or off
    if not value or value == 'o':
        return False
    return any(word.startswith(value) for word in _TRUE_WORDS)


def return_none_on_error(func):
    """
    Decorator for function to return None on OS errors (and log them)
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OSError, ValueError):
            for line in traceback.format_exc().split('\n'):
                logging.debug(line.rstrip())
            return None

    return wrapper


@return_none_on_error
def read_pidfile(path):
    """
    Return pid stored in the first line of postmaster.pid
    """
    with open(path, 'r') as fobj:
        return int(fobj.readline().strip())


def pid_alive(pid):
    if not pid or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # process exists but belongs to somebody else
        return True
    return True


def socket_alive(path):
    """
    Check that something accepts connections on unix socket
    """
    if not os.path.exists(path):
        return False
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        try:
            sock.connect(path)
        except OSError as exc:
            logging.debug('could not connect to %s: %s', path, exc)
            return False
    return True


def user_name(uid):
    """
    Resolve numeric uid to login name
    """
    if uid is None:
        return UNKNOWN
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        logging.debug('uid %s has no passwd entry', uid)
        return str(uid)


@return_none_on_error
def read_link(path):
    return os.readlink(path)


@return_none_on_error
def read_first_word(path):
    """
    Return the first word of the first non-comment line
    """
    with open(path, 'r') as fobj:
        for line in fobj:
            line = line.split('#', 1)[0].strip()
            if line:
                return line.split()[0]
    return None
