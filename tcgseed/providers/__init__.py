"""
Provider Dispatcher
"""

from .scryfall_bulk import ScryfallBulkProvider

__all__ = ["ScryfallBulkProvider"]
