"""Shard producer — builds one library shard and hands it off once."""

from __future__ import annotations

import logging

from implindex.registry.host import ShardContext
from implindex.registry.models import HandoffResult, ShardMapping, entry_from_wire

logger = logging.getLogger(__name__)


class ShardProducer:
    """Hands a statically-known shard to the registry.

    ``libraries`` maps library name to implementor entries, either as
    ``ImplementorEntry`` values or their wire-form dicts. Entries of any
    other shape are carried through untouched.
    """

    def __init__(self, capability: str, libraries: dict[str, list]):
        self.capability = capability
        self.libraries = libraries

    def build(self) -> ShardMapping:
        """Assemble the shard from the literal data."""
        return ShardMapping(
            capability=self.capability,
            libraries={
                lib: [entry_from_wire(e) for e in entries or []]
                for lib, entries in self.libraries.items()
            },
        )

    def run(self, context: ShardContext) -> HandoffResult:
        """Build the shard and register it, or park it until the host is ready."""
        shard = self.build()

        if context.host.is_ready:
            context.host.register(shard)
            logger.debug(
                "Registered %s for %s", self.capability, ", ".join(map(str, shard.library_names))
            )
            return HandoffResult.REGISTERED

        context.pending.store(shard)
        logger.debug(
            "Deferred %s for %s", self.capability, ", ".join(map(str, shard.library_names))
        )
        return HandoffResult.DEFERRED

    @classmethod
    def from_shard(cls, shard: ShardMapping) -> ShardProducer:
        return cls(shard.capability, shard.libraries)
