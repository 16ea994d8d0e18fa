"""Lead scoring, qualification stages and conversion predictions."""

__version__ = "1.0.0"
