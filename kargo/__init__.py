"""Helpers for analysing Cargo projects, parsing rust scripts and running cargo."""

__version__ = "0.1.0"