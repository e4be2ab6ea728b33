"""Schema-aware validation and structured merging of YAML and JSON-like data."""

__version__ = "0.1.0"

__all__ = ["helpers", "merge", "parser", "schema", "typed", "validate"]