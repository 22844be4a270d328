"""Snowgoose: streaming chat relay with credit accounting."""

__version__ = "1.0.0"
