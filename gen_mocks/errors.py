"""Exceptions shared across the mock generation pipeline."""


class GenMocksError(Exception):
    """Base class for errors that abort a generation run."""


class ConfigError(GenMocksError):
    """Invalid or missing command-line configuration."""
