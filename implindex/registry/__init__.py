"""Registry — the shard handoff and merge core.

The registry provides:
- Producers: one per documented library, handing off a shard exactly once
- Host: installs the registration entry point and drains pending shards
- Index: the merged library -> implementors mapping read by consumers
"""

from implindex.registry.host import (
    ImplementorRegistry,
    PendingArea,
    RegistryHost,
    ShardContext,
)
from implindex.registry.models import (
    HandoffResult,
    HostState,
    ImplementorEntry,
    PendingPolicy,
    ShardMapping,
)
from implindex.registry.producer import ShardProducer

__all__ = [
    "HandoffResult",
    "HostState",
    "ImplementorEntry",
    "ImplementorRegistry",
    "PendingArea",
    "PendingPolicy",
    "RegistryHost",
    "ShardContext",
    "ShardMapping",
    "ShardProducer",
]
