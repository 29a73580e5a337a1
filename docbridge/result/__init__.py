"""Conversion between documents and wire payloads."""

from docbridge.result.converter import Converter

__all__ = ["Converter"]
