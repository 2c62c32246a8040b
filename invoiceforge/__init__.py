"""InvoiceForge - spreadsheet to canonical invoice normalization."""

__version__ = "0.1.0"
