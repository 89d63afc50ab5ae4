"""Salon desk back end: billing, loyalty and inventory ledgers."""

__version__ = "0.1.0"
