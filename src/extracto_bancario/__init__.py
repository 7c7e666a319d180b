"""Extracto Bancario - bank statement extraction and CSV export"""

__version__ = "0.1.0"
