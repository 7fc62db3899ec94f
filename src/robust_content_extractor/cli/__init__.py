"""Command-line interface for the content extractor.

Provides the ``robust-extract`` tool for extracting the main content of a page
and inspecting the candidate ranking.
"""

from .main import main

__all__ = ["main"]
