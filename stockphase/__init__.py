"""stockphase - Wyckoff phase classification and trade recommendations from daily bars."""

__version__ = "0.1.0"
