"""vendorguard: vendoring of Go dependencies with pre-commit verification."""

__version__ = "0.1.0"
