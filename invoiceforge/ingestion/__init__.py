"""Spreadsheet ingestion for InvoiceForge.

Decodes CSV/XLSX uploads into in-memory sheets.
"""
