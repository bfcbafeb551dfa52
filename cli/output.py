"""
Output Formatting Module for DSS CLI

Renders command results as tables, JSON or YAML. Table output shows window
and mint timestamps as UTC datetimes and flattens nested sections (such as
the merged configuration) into dot-path keys.
"""

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple

import yaml
from tabulate import tabulate


OUTPUT_FORMATS = ['table', 'json', 'yaml']

# Fields holding UNIX seconds
TIMESTAMP_FIELDS = {'start_time', 'end_time', 'mint_timestamp'}

EMPTY_RESULT = "No data available"


class OutputFormatter:
    """Formatter for CLI results."""

    def __init__(self, format_type: str = 'table', color_output: bool = True):
        """
        Args:
            format_type: One of OUTPUT_FORMATS
            color_output: Highlight table keys when stdout is a terminal
        """
        if format_type not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {format_type}")
        self.format_type = format_type
        self.color_output = color_output and sys.stdout.isatty()

    def format(self, data: Any) -> str:
        renderers = {
            'json': self.to_json,
            'yaml': self.to_yaml,
            'table': self.to_table,
        }
        return renderers[self.format_type](data)

    def to_json(self, data: Any) -> str:
        return json.dumps(data, indent=2, default=_plain)

    def to_yaml(self, data: Any) -> str:
        plain = json.loads(self.to_json(data))
        return yaml.safe_dump(plain, default_flow_style=False, sort_keys=False).rstrip()

    def to_table(self, data: Any) -> str:
        if isinstance(data, dict):
            return self._key_value_table(data)
        if isinstance(data, list):
            return self._row_table(data)
        return self._cell(None, data)

    def _key_value_table(self, record: Dict[str, Any]) -> str:
        if not record:
            return EMPTY_RESULT
        rows = [[self._highlight(key), self._cell(key.rsplit('.', 1)[-1], value)]
                for key, value in _flatten(record)]
        return tabulate(rows, tablefmt='plain')

    def _row_table(self, items: List[Any]) -> str:
        if not items:
            return EMPTY_RESULT
        if not isinstance(items[0], dict):
            return '\n'.join(self._cell(None, item) for item in items)

        columns = list(items[0].keys())
        rows = [[self._cell(column, item.get(column)) for column in columns] for item in items]
        return tabulate(rows, headers=columns, tablefmt='simple')

    def _cell(self, key: Any, value: Any) -> str:
        """Render one value for a table cell."""
        if value is None:
            return '-'
        if isinstance(value, bool):
            return 'yes' if value else 'no'
        if key in TIMESTAMP_FIELDS and isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')
        if isinstance(value, Enum):
            return str(value.value)
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        if isinstance(value, (list, tuple)):
            return ', '.join(str(v) for v in value) or '-'
        return str(value)

    def _highlight(self, text: str) -> str:
        if not self.color_output:
            return text
        return f"\033[1;36m{text}\033[0m"


def _flatten(record: Dict[str, Any], prefix: str = '') -> Iterator[Tuple[str, Any]]:
    """Yield (dot.path, value) pairs for nested mappings."""
    for key, value in record.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            yield from _flatten(value, prefix=f"{path}.")
        else:
            yield path, value


def _plain(obj: Any) -> Any:
    """json.dumps fallback for sets, enums, datetimes and paths."""
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    return str(obj)
