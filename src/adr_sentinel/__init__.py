"""ADR Sentinel: fuzzy medicine matching and duplicate report detection."""

__version__ = "0.1.0"
