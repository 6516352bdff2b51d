"""Handoff - offline coding agent using a text file protocol."""

__version__ = "0.1.0"
