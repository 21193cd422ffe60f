"""Registry host — install, drain, and merge of implementor shards.

Shards reach the index one of two ways:
1. Directly through ``RegistryHost.register`` once the host is ready
2. Through the pending area, drained when the host installs

Either way each shard is merged exactly once, last write wins per library.
"""

from __future__ import annotations

import logging

from implindex.registry.models import (
    HostState,
    ImplementorEntry,
    PendingPolicy,
    ShardMapping,
    entry_to_wire,
)

logger = logging.getLogger(__name__)


class ImplementorRegistry:
    """The merged index: capability -> library -> implementor entries."""

    def __init__(self, default_capability: str = ""):
        self.default_capability = default_capability
        self._index: dict[str, dict[str, list[ImplementorEntry]]] = {}

    def merge(self, shard: ShardMapping) -> None:
        """Merge a shard, replacing any prior entries for its libraries."""
        by_library = self._index.setdefault(shard.capability, {})
        for library, entries in shard.libraries.items():
            if library in by_library:
                logger.debug("Replacing %s implementors for %s", shard.capability, library)
            by_library[library] = list(entries)

    def get(self, library: str, capability: str | None = None) -> list[ImplementorEntry] | None:
        """Get the implementors a library contributed, or None if absent."""
        entries = self._index.get(self._capability(capability), {}).get(library)
        return list(entries) if entries is not None else None

    def libraries(self, capability: str | None = None) -> list[str]:
        return list(self._index.get(self._capability(capability), {}))

    def capabilities(self) -> list[str]:
        return list(self._index)

    def to_dict(self, capability: str | None = None) -> dict[str, list[dict]]:
        """Plain mapping of one capability's index, for consumers."""
        by_library = self._index.get(self._capability(capability), {})
        return {
            lib: [entry_to_wire(e) for e in entries] for lib, entries in by_library.items()
        }

    def _capability(self, capability: str | None) -> str:
        if capability is not None:
            return capability
        if self.default_capability:
            return self.default_capability
        # A single indexed capability is the implicit default
        if len(self._index) == 1:
            return next(iter(self._index))
        return ""

    def __contains__(self, library: str) -> bool:
        return library in self._index.get(self._capability(None), {})

    def __len__(self) -> int:
        return sum(len(by_library) for by_library in self._index.values())


class PendingArea:
    """Holding area for shards produced before the host is ready."""

    def __init__(self, policy: PendingPolicy = PendingPolicy.QUEUE):
        self.policy = policy
        self._shards: list[ShardMapping] = []

    def store(self, shard: ShardMapping) -> None:
        if self.policy == PendingPolicy.SINGLE_SLOT and self._shards:
            dropped = self._shards.pop()
            logger.warning(
                "Pending slot occupied, dropping shard for %s",
                ", ".join(map(str, dropped.library_names)) or "<empty>",
            )
        self._shards.append(shard)

    def take(self) -> list[ShardMapping]:
        """Remove and return every pending shard, oldest first."""
        shards, self._shards = self._shards, []
        return shards

    @property
    def is_empty(self) -> bool:
        return not self._shards

    def __len__(self) -> int:
        return len(self._shards)


class RegistryHost:
    """Owns the registration entry point for the index."""

    def __init__(self, registry: ImplementorRegistry, pending: PendingArea):
        self.registry = registry
        self.pending = pending
        self.state = HostState.NOT_READY

    @property
    def is_ready(self) -> bool:
        return self.state == HostState.READY

    def install(self) -> int:
        """Mark the host ready and drain the pending area.

        Returns the number of shards drained. Installing twice is a no-op.
        """
        if self.is_ready:
            logger.debug("Registry host already installed")
            return 0

        self.state = HostState.READY
        drained = self.pending.take()
        for shard in drained:
            self.registry.merge(shard)
        logger.debug("Registry host installed, drained %d pending shard(s)", len(drained))
        return len(drained)

    def register(self, shard: ShardMapping) -> None:
        """Accept a shard into the index."""
        self.registry.merge(shard)


class ShardContext:
    """Shared handle passed to producers and the host.

    Created once per process and never torn down.
    """

    def __init__(
        self,
        policy: PendingPolicy = PendingPolicy.QUEUE,
        default_capability: str = "",
    ):
        self.registry = ImplementorRegistry(default_capability)
        self.pending = PendingArea(policy)
        self.host = RegistryHost(self.registry, self.pending)

    @classmethod
    def from_config(cls, config) -> ShardContext:
        """Build a context from a ``RegistryConfig``."""
        return cls(policy=config.pending_policy, default_capability=config.capability)
