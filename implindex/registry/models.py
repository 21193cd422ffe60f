"""Registry data models — implementor entries, shards, and lifecycle flags."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum

_FIELDS = ("text", "synthetic", "types")


class HostState(Enum):
    """Lifecycle of the registry host."""

    NOT_READY = "not_ready"
    READY = "ready"


class PendingPolicy(Enum):
    """How shards that arrive before the host is ready are held."""

    QUEUE = "queue"  # Keep every pending shard, drain in arrival order
    SINGLE_SLOT = "single_slot"  # Keep only the most recent pending shard


class HandoffResult(Enum):
    """Which path a producer's handoff took."""

    REGISTERED = "registered"  # Host was ready, registered directly
    DEFERRED = "deferred"  # Host not ready, stored in the pending area


@dataclass
class ImplementorEntry:
    """One type implementing a capability, as rendered upstream.

    Entries are transported, never interpreted. ``from_dict`` keeps every
    key it was given, in order, and ``to_dict`` emits exactly those keys.
    """

    text: str = ""  # Pre-rendered markup for the impl signature
    synthetic: bool = False  # Auto/blanket impl
    types: list[str] = field(default_factory=list)  # Fully-qualified type paths
    extra: dict = field(default_factory=dict)  # Metadata beyond the fields above
    keys: tuple[str, ...] | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict:
        values = {"text": self.text, "synthetic": self.synthetic, "types": self.types}
        order = self.keys if self.keys is not None else (*_FIELDS, *self.extra)
        out = {}
        for key in order:
            value = values[key] if key in values else self.extra[key]
            out[key] = copy.deepcopy(value)
        return out

    @classmethod
    def from_dict(cls, data: dict) -> ImplementorEntry:
        data = copy.deepcopy(data)
        return cls(
            text=data.get("text", ""),
            synthetic=data.get("synthetic", False),
            types=data.get("types", []),
            extra={k: v for k, v in data.items() if k not in _FIELDS},
            keys=tuple(data),
        )


def entry_from_wire(value):
    """Wrap a wire-form mapping; anything else is carried as-is."""
    if isinstance(value, ImplementorEntry):
        return ImplementorEntry.from_dict(value.to_dict())
    if isinstance(value, dict):
        return ImplementorEntry.from_dict(value)
    return copy.deepcopy(value)


def entry_to_wire(entry):
    """Inverse of ``entry_from_wire``."""
    if isinstance(entry, ImplementorEntry):
        return entry.to_dict()
    return copy.deepcopy(entry)


@dataclass(frozen=True)
class ShardMapping:
    """Implementors of one capability, keyed by library name.

    Produced once by a single shard producer. Entry order within a
    library is the presentation order chosen upstream.
    """

    capability: str
    libraries: dict[str, list[ImplementorEntry]] = field(default_factory=dict)

    @property
    def library_names(self) -> list[str]:
        return list(self.libraries)

    def to_dict(self) -> dict[str, list[dict]]:
        return {
            lib: [entry_to_wire(e) for e in entries] for lib, entries in self.libraries.items()
        }
