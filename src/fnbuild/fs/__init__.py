"""Filesystem helpers for moving FileSets on and off disk."""

from .download import download
from .glob import glob

__all__ = ["download", "glob"]
