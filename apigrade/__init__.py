"""Static, rule-based API design review."""

__version__ = "0.1.0"
