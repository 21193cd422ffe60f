"""Shard files — the generated per-capability implementor data."""

from implindex.shards.format import (
    ShardFormatError,
    capability_from_path,
    load_shard_file,
    parse_shard,
    render_shard,
)

__all__ = [
    "ShardFormatError",
    "capability_from_path",
    "load_shard_file",
    "parse_shard",
    "render_shard",
]
