"""Verify installed WordPress plugins against their published releases before updating."""

__version__ = "0.1.0"
