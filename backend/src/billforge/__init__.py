"""
billforge - quotation and invoice engine for small businesses.

Computes document totals, drives the document lifecycle (including the
ledger posting made when an invoice is paid) and lays documents out onto
fixed-size pages for preview and PDF export.
"""

__version__ = "0.1.0"
