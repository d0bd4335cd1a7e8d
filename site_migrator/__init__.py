"""
Site Migrator - move existing web pages into a WordPress import bundle.

This package renders source pages with a headless browser, sanitizes and
classifies their content, downloads and normalizes their images, and writes
a CSV file ready for bulk import.
"""

__version__ = "1.0.0"
__author__ = "Site Migrator Team"
