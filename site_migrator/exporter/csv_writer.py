"""
CSV serialization in the "Really Simple CSV Importer" layout.

Every field is quoted and embedded quotes are doubled.
"""

import csv
import os
from typing import List

from ..models import ExportRow
from ..utils.paths import ensure_parent_dir


CSV_HEADERS = [
    'post_title',
    'post_content',
    'post_type',
    'post_status',
    'post_date',
    'post_name',
    'post_excerpt',
    'post_category',
]


def row_values(row: ExportRow) -> List[str]:
    values = [
        row.title,
        row.content,
        row.type,
        row.status,
        row.date,
        row.slug,
        row.excerpt,
        row.category,
    ]
    return ['' if value is None else str(value) for value in values]


def write_csv(path: str, rows: List[ExportRow]) -> int:
    """
    Write the export file.

    Args:
        path: Output file path (parent directories are created)
        rows: Rows in output order

    Returns:
        Size of the written file in bytes
    """
    ensure_parent_dir(path)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(CSV_HEADERS)
        for row in rows:
            writer.writerow(row_values(row))

    return os.path.getsize(path)
