"""Sync shared AWS profile registries into the local AWS config file."""

__version__ = "0.1.0"