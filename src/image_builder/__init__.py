"""Manifest-driven, multi-platform container image builds."""

__version__ = "0.1"
