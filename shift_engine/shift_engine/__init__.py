"""sqlshift engine: translate SQL statements between engine dialects."""

__version__ = "0.1.0"
