"""
List PostgreSQL clusters installed on the host
"""
# encoding: utf-8

import logging
import os

from configparser import RawConfigParser

DEFAULT_CONFIG_FILE = '/etc/postgresql-common/pglsclusters.conf'

# Options from command line that override [global] section
_GLOBAL_OPTIONS = ('log_level',)


def read_config(filename=None, options=None):
    """
    Merge config with default values, environment and cmd options
    """
    defaults: dict[str, dict] = {
        'global': {
            'log_level': 'warning',
        },
        'paths': {
            'config_root': '/etc/postgresql',
            'install_root': '/usr/lib/postgresql',
            'log_root': '/var/log/postgresql',
            'socket_dir': '/var/run/postgresql',
        },
        'defaults': {
            'log_directory': 'log',
            'legacy_log_directory': 'pg_log',
            # versions below this one use legacy_log_directory
            'legacy_log_directory_before': '10',
            'log_filename': 'postgresql-%Y-%m-%d_%H%M%S.log',
            'log_destination': 'stderr',
            'start': 'auto',
        },
    }

    config = RawConfigParser()
    if not filename and options is not None:
        filename = getattr(options, 'config_file', None)

    config.read(filename or DEFAULT_CONFIG_FILE)

    #
    # Appending default config with default values.
    #
    for section in defaults:
        if not config.has_section(section):
            config.add_section(section)
        for key, value in defaults[section].items():
            if not config.has_option(section, key):
                config.set(section, key, value)

    # Same variable is honored by postgresql-common tools
    if os.environ.get('PG_CLUSTER_CONF_ROOT'):
        config.set('paths', 'config_root', os.environ['PG_CLUSTER_CONF_ROOT'])

    #
    # Rewriting global config with parameters from command line.
    #
    if options:
        for key in _GLOBAL_OPTIONS:
            value = getattr(options, key, None)
            if value is not None:
                config.set('global', key, value)

    return config


def init_logging(config):
    """
    Set log level and format
    """
    level = getattr(logging, config.get('global', 'log_level').upper())
    format = '{asctime} {levelname:<8}: {message}'
    logging.basicConfig(level=level, format=format, style='{')
