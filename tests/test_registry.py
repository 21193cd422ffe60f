"""Tests for the shard handoff and merge core."""

from itertools import permutations

from implindex.registry import (
    HandoffResult,
    HostState,
    ImplementorEntry,
    PendingPolicy,
    ShardContext,
    ShardMapping,
    ShardProducer,
)

DISPLAY = "core::fmt::Display"


def _producer(library: str, *texts: str) -> ShardProducer:
    return ShardProducer(DISPLAY, {library: [{"text": t} for t in texts]})


def _texts(context: ShardContext, library: str) -> list[str]:
    return [e.text for e in context.registry.get(library, DISPLAY)]


# --- Scenarios ---


def test_host_first():
    ctx = ShardContext()
    ctx.host.install()

    result = _producer("nix", "Errno").run(ctx)

    assert result == HandoffResult.REGISTERED
    assert ctx.registry.get("nix", DISPLAY) == [ImplementorEntry(text="Errno")]
    assert ctx.pending.is_empty


def test_data_first():
    ctx = ShardContext()

    result = _producer("gbm", "WrongDeviceError", "DeviceDestroyedError").run(ctx)
    assert result == HandoffResult.DEFERRED
    assert ctx.registry.get("gbm", DISPLAY) is None

    drained = ctx.host.install()

    assert drained == 1
    assert _texts(ctx, "gbm") == ["WrongDeviceError", "DeviceDestroyedError"]
    assert ctx.pending.is_empty


def test_two_data_first_producers_queue_keeps_both():
    ctx = ShardContext(policy=PendingPolicy.QUEUE)
    _producer("gbm", "WrongDeviceError").run(ctx)
    _producer("nix", "Errno").run(ctx)
    assert len(ctx.pending) == 2

    ctx.host.install()

    assert sorted(ctx.registry.libraries(DISPLAY)) == ["gbm", "nix"]
    assert ctx.pending.is_empty


def test_two_data_first_producers_single_slot_keeps_last():
    ctx = ShardContext(policy=PendingPolicy.SINGLE_SLOT)
    _producer("gbm", "WrongDeviceError").run(ctx)
    _producer("nix", "Errno").run(ctx)
    assert len(ctx.pending) == 1

    ctx.host.install()

    assert ctx.registry.libraries(DISPLAY) == ["nix"]
    assert ctx.registry.get("gbm", DISPLAY) is None
    assert ctx.pending.is_empty


# --- Properties ---


def test_entry_order_preserved():
    ctx = ShardContext()
    ctx.host.install()
    _producer("dbus", "A", "B", "C").run(ctx)
    assert _texts(ctx, "dbus") == ["A", "B", "C"]


def test_reregistration_replaces():
    ctx = ShardContext()
    ctx.host.install()
    _producer("nix", "Errno", "Error").run(ctx)
    _producer("nix", "Errno2").run(ctx)
    assert _texts(ctx, "nix") == ["Errno2"]


def test_pending_reregistration_replaces():
    ctx = ShardContext()
    _producer("nix", "Old").run(ctx)
    _producer("nix", "New").run(ctx)
    ctx.host.install()
    assert _texts(ctx, "nix") == ["New"]


def test_order_independence():
    producers = [_producer("gbm", "WrongDeviceError"), _producer("nix", "Errno")]

    before = ShardContext()
    for p in producers:
        p.run(before)
    before.host.install()

    after = ShardContext()
    after.host.install()
    for p in producers:
        p.run(after)

    assert before.registry.to_dict(DISPLAY) == after.registry.to_dict(DISPLAY)


def test_no_loss_for_every_interleaving():
    producers = [
        _producer("calloop", "InsertError"),
        _producer("nix", "Errno"),
        _producer("gbm", "WrongDeviceError"),
        _producer("nix", "Error"),
    ]
    install = None

    for order in permutations([*producers, install]):
        ctx = ShardContext()
        for step in order:
            if step is None:
                ctx.host.install()
            else:
                step.run(ctx)

        assert sorted(ctx.registry.libraries(DISPLAY)) == ["calloop", "gbm", "nix"]
        last_nix = [p for p in order if p is not None and "nix" in p.libraries][-1]
        assert _texts(ctx, "nix") == [e["text"] for e in last_nix.libraries["nix"]]
        assert ctx.pending.is_empty


# --- Host lifecycle ---


def test_host_starts_not_ready():
    ctx = ShardContext()
    assert ctx.host.state == HostState.NOT_READY
    assert not ctx.host.is_ready


def test_install_twice_does_not_drain_twice():
    ctx = ShardContext()
    _producer("gbm", "WrongDeviceError").run(ctx)
    assert ctx.host.install() == 1
    assert ctx.host.install() == 0
    assert ctx.host.state == HostState.READY
    assert _texts(ctx, "gbm") == ["WrongDeviceError"]


def test_install_with_nothing_pending():
    ctx = ShardContext()
    assert ctx.host.install() == 0
    assert len(ctx.registry) == 0


def test_empty_sequence_is_accepted():
    ctx = ShardContext()
    ctx.host.install()
    ShardProducer(DISPLAY, {"udev": []}).run(ctx)
    assert ctx.registry.get("udev", DISPLAY) == []
    assert "udev" in ctx.registry


def test_registry_copies_producer_lists():
    entries = [ImplementorEntry(text="Errno", types=["nix::errno::Errno"])]
    shard = ShardMapping(capability=DISPLAY, libraries={"nix": entries})

    ctx = ShardContext()
    ctx.host.install()
    ctx.host.register(shard)
    entries.append(ImplementorEntry(text="Late"))

    assert _texts(ctx, "nix") == ["Errno"]


def test_capabilities_are_indexed_separately():
    ctx = ShardContext()
    ctx.host.install()
    _producer("nix", "Errno").run(ctx)
    ShardProducer("std::error::Error", {"nix": [{"text": "Errno"}, {"text": "Other"}]}).run(ctx)

    assert sorted(ctx.registry.capabilities()) == [DISPLAY, "std::error::Error"]
    assert len(ctx.registry.get("nix", "std::error::Error")) == 2
    assert len(ctx.registry.get("nix", DISPLAY)) == 1


def test_default_capability_lookup():
    ctx = ShardContext(default_capability=DISPLAY)
    ctx.host.install()
    _producer("nix", "Errno").run(ctx)
    assert ctx.registry.get("nix") == [ImplementorEntry(text="Errno")]
    assert ctx.registry.to_dict() == {"nix": [{"text": "Errno"}]}


def test_producer_accepts_entry_values():
    entry = ImplementorEntry(text="Errno", synthetic=True, types=["nix::errno::Errno"])
    shard = ShardProducer(DISPLAY, {"nix": [entry]}).build()
    assert shard.libraries["nix"] == [entry]
    assert shard.libraries["nix"][0] is not entry


# --- Entries are carried, not interpreted ---


def test_entry_metadata_passes_through_unchanged():
    wire = {"text": "Errno", "types": ["nix::Errno"], "aliases": ["E"]}
    ctx = ShardContext()
    ctx.host.install()

    ShardProducer(DISPLAY, {"nix": [wire]}).run(ctx)

    assert ctx.registry.to_dict(DISPLAY) == {"nix": [wire]}
    assert list(ctx.registry.to_dict(DISPLAY)["nix"][0]) == ["text", "types", "aliases"]
    assert ctx.registry.get("nix", DISPLAY)[0].extra == {"aliases": ["E"]}


def test_entry_keys_are_not_defaulted():
    ctx = ShardContext()
    ShardProducer(DISPLAY, {"udev": [{"types": ["udev::Error"]}]}).run(ctx)
    ctx.host.install()

    assert ctx.registry.to_dict(DISPLAY)["udev"] == [{"types": ["udev::Error"]}]


def test_non_mapping_entries_are_carried_as_is():
    ctx = ShardContext()
    ctx.host.install()

    result = ShardProducer(DISPLAY, {"nix": ["Errno", None, 3]}).run(ctx)

    assert result == HandoffResult.REGISTERED
    assert ctx.registry.get("nix", DISPLAY) == ["Errno", None, 3]
    assert ctx.registry.to_dict(DISPLAY) == {"nix": ["Errno", None, 3]}


def test_missing_entry_list_is_empty():
    ctx = ShardContext()
    ShardProducer(DISPLAY, {"slog": None}).run(ctx)
    ctx.host.install()
    assert ctx.registry.get("slog", DISPLAY) == []


def test_source_wire_dict_is_not_aliased():
    wire = {"text": "Errno", "types": ["nix::Errno"]}
    ctx = ShardContext()
    ctx.host.install()
    ShardProducer(DISPLAY, {"nix": [wire]}).run(ctx)

    wire["types"].append("nix::Other")

    assert ctx.registry.to_dict(DISPLAY)["nix"] == [{"text": "Errno", "types": ["nix::Errno"]}]
