"""
Resumable seeding of the card store from split partition files
"""

from .assets import (
    AbstractAssetStore,
    AssetPipeline,
    LocalAssetStore,
    PassthroughCodec,
    S3AssetStore,
    asset_store_from_config,
)
from .checkpoint_store import CheckpointStore
from .error_log import ErrorLog
from .orchestrator import (
    SeedOptions,
    SeedOrchestrator,
    SeedSummary,
    list_sets,
    load_split_index,
    seed_cards,
)

__all__ = [
    "AbstractAssetStore",
    "AssetPipeline",
    "CheckpointStore",
    "ErrorLog",
    "LocalAssetStore",
    "PassthroughCodec",
    "S3AssetStore",
    "SeedOptions",
    "SeedOrchestrator",
    "SeedSummary",
    "asset_store_from_config",
    "list_sets",
    "load_split_index",
    "seed_cards",
]
