"""
TCGSEED data models
"""

from .cards import ParsedCard, SeriesInfo, SinkRow
from .checkpoint import CheckpointState, CheckpointStatus, ErrorRecord, ErrorType
from .index import IndexLanguageEntry, IndexSetEntry, SplitIndex
from .partition import PartitionFile, PartitionKey, PartitionMetadata, base_language

__all__ = [
    "CheckpointState",
    "CheckpointStatus",
    "ErrorRecord",
    "ErrorType",
    "IndexLanguageEntry",
    "IndexSetEntry",
    "ParsedCard",
    "PartitionFile",
    "PartitionKey",
    "PartitionMetadata",
    "SeriesInfo",
    "SinkRow",
    "SplitIndex",
    "base_language",
]
