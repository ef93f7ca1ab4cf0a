"""
Bulk file splitting: scan, write, materialize
"""

from .handle_pool import FileHandlePool
from .materializer import build_index, load_index, materialize_partitions, write_index
from .scanner import iter_records, scan_metadata, select_valid_keys
from .splitter import SplitOptions, SplitResult, split_bulk_data
from .writer import write_partitions

__all__ = [
    "FileHandlePool",
    "SplitOptions",
    "SplitResult",
    "build_index",
    "iter_records",
    "load_index",
    "materialize_partitions",
    "scan_metadata",
    "select_valid_keys",
    "split_bulk_data",
    "write_index",
    "write_partitions",
]
