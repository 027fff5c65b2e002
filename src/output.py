"""
Renders collected clusters as text table, JSON or YAML
"""
# encoding: utf-8

import json
import sys

import yaml

from .exceptions import OutputFormatError
from .types import HEADER

GREEN = '\033[1;32m'
RED = '\033[1;31m'
RESET = '\033[0m'

STATUS_COLUMN = HEADER.index('Status')


def format_table(rows, header=True, color=False):
    """
    Left-align all columns but the last one, which is never padded.
    Rows are coloured by status, header never is.
    """
    table = [tuple(HEADER)] if header else []
    table.extend(row.cells() for row in rows)
    if not table:
        return []

    widths = [max(len(line[col]) for line in table) for col in range(len(HEADER) - 1)]
    lines = []
    for index, line in enumerate(table):
        text = ' '.join([cell.ljust(width) for cell, width in zip(line, widths)] + [line[-1]])
        if color and not (header and index == 0):
            prefix = GREEN if line[STATUS_COLUMN].startswith('online') else RED
            text = prefix + text + RESET
        lines.append(text)
    return lines


def render_text(rows, header=True, stream=None):
    stream = stream or sys.stdout
    color = stream.isatty()
    for line in format_table(rows, header=header, color=color):
        stream.write(line + '\n')


def render_json(records, stream=None):
    stream = stream or sys.stdout
    try:
        data = json.dumps(records, sort_keys=True, indent=4)
    except (TypeError, ValueError) as exc:
        raise OutputFormatError(f'could not encode cluster records as JSON: {exc}')
    stream.write(data + '\n')


def render_yaml(records, stream=None):
    stream = stream or sys.stdout
    try:
        data = yaml.safe_dump(records, default_flow_style=False, sort_keys=True, indent=4)
    except yaml.YAMLError as exc:
        raise OutputFormatError(f'could not encode cluster records as YAML: {exc}')
    stream.write(data)
