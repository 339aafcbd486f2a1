"""Spreadsheet attachment -> destination record mapper.

Reads the first worksheet of each spreadsheet attached to a source record,
applies the configured field mapping and produces one destination record
per spreadsheet.
"""

__version__ = "0.1.0"
