"""
gui - PySide6 Interface for Regex Rename
"""

from .gui_entry import main

__all__ = ["main"]
