"""Build test binaries and hand their paths to a debugger."""

__version__ = "0.1.0"
