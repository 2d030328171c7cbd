"""cgp-lens - readable dependency errors for CGP-based Rust code."""

__version__ = "0.1.0"
