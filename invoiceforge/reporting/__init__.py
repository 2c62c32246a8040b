"""Reporting module for InvoiceForge.

Payment status, error reports and display formatting.
"""
