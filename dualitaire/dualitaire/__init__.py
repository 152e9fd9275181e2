"""Dualitaire: real-time head-to-head Klondike solitaire."""

__version__ = "0.1.0"
