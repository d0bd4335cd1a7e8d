"""
Exporter module.

Contains title/date/excerpt derivation and the CSV writer.
"""

from .csv_writer import CSV_HEADERS, write_csv
from .dates import extract_date, parse_date
from .exporter import CsvExporter

__all__ = [
    "CSV_HEADERS",
    "CsvExporter",
    "extract_date",
    "parse_date",
    "write_csv",
]
