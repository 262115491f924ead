"""spendscan: receipt and statement scanning into reviewable expense transactions."""

__version__ = "0.1.0"
