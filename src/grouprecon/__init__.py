"""Discover and classify publicly exposed Google Workspace groups."""

__version__ = "0.1.0"
