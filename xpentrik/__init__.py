"""Xpentrik: SMS-driven personal expense tracking backend."""

__version__ = "1.0.0"
