"""Command-line interface module for XML Tree Normalizer.

This module provides CLI tools for normalizing XML files into compact node
trees and for checking that files normalize cleanly.
"""

from .main import main

__all__ = ["main"]
