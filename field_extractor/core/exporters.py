"""
Export encoders for extracted records (CSV, JSON, XML)
"""

import csv
import io
import json
import logging
import re
from typing import Callable, Dict, List

from .exceptions import InvalidInputError
from .models import Record

logger = logging.getLogger(__name__)

LIST_SEPARATOR = '; '

CONTENT_TYPES = {
    'csv': 'text/csv',
    'json': 'application/json',
    'xml': 'application/xml',
}


def _flatten(value) -> str:
    if isinstance(value, list):
        return LIST_SEPARATOR.join(str(v) for v in value)
    return str(value)


def _columns(records: List[Record]) -> List[str]:
    """Union of record keys, first-seen order"""
    columns = {}
    for record in records:
        for key in record:
            columns.setdefault(key, None)
    return list(columns)


def to_csv(records: List[Record]) -> bytes:
    """Every cell quoted, list values joined with '; ', missing values empty"""
    if not records:
        return b''

    columns = _columns(records)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(columns)
    for record in records:
        writer.writerow([_flatten(record[c]) if c in record else '' for c in columns])

    return buffer.getvalue().encode('utf-8')


def to_json(records: List[Record]) -> bytes:
    return json.dumps(records, indent=2, ensure_ascii=False).encode('utf-8')


def xml_tag(name: str) -> str:
    """
    Turn a field name into a valid XML element name

    'Country Name' -> 'Country_Name', '2024 Sales' -> '_2024_Sales'
    """
    tag = re.sub(r'[^\w.\-]', '_', name.strip()) or 'field'
    if not re.match(r'[A-Za-z_]', tag) or tag.lower().startswith('xml'):
        tag = f"_{tag}"
    return tag


def _cdata(text: str) -> str:
    # "]]>" cannot appear inside a CDATA section; split it across two
    return '<![CDATA[' + text.replace(']]>', ']]]]><![CDATA[>') + ']]>'


def to_xml(records: List[Record]) -> bytes:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', '<data>']
    for index, record in enumerate(records, 1):
        lines.append(f'  <item id="{index}">')
        for key, value in record.items():
            tag = xml_tag(key)
            lines.append(f'    <{tag}>{_cdata(_flatten(value))}</{tag}>')
        lines.append('  </item>')
    lines.append('</data>')
    return '\n'.join(lines).encode('utf-8')


EXPORTERS: Dict[str, Callable[[List[Record]], bytes]] = {
    'csv': to_csv,
    'json': to_json,
    'xml': to_xml,
}


def export_records(records: List[Record], export_format: str) -> bytes:
    """
    Encode records in the requested format

    Raises:
        InvalidInputError: unknown format (excel is not supported)
    """
    encoder = EXPORTERS.get((export_format or '').lower())
    if encoder is None:
        raise InvalidInputError(
            f"Unsupported export format: {export_format!r} (expected one of {', '.join(EXPORTERS)})"
        )

    data = encoder(records)
    logger.info(f" Exported {len(records)} records as {export_format} ({len(data)} bytes)")
    return data
