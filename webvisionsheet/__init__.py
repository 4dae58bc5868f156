"""Spreadsheet enrichment from website screenshots.

Reads a workbook, screenshots the website named in each row and asks a vision
model for a fixed set of fields, written back as new columns.
"""

__version__ = "0.1.0"
