"""
TCGSEED, bulk card data splitter and resumable catalog seeder
"""

from ._version import __version__

__all__ = ["__version__"]
