"""TMC test runner - runs tests in an isolated runner process."""

__version__ = "0.1.0"
