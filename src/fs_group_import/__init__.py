"""Bulk group provisioning from spreadsheet templates."""

__version__ = "0.1.0"
