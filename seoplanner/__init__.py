"""Keyword research and content-calendar allocation for SEO content planning."""

__version__ = "0.1.0"
