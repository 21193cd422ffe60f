"""Shard file format — read and write generated implementor shard files.

Shard files are emitted by the documentation generator, one per
capability, e.g. ``implementors/core/fmt/trait.Display.js``::

    (function() {var implementors = {};
    implementors["nix"] = [{"text":"...","synthetic":false,"types":["nix::Errno"]}];
    if (window.register_implementors) {...} else {window.pending_implementors = implementors;}})()

Shards can also be written by hand as YAML or JSON documents with
``capability`` and ``implementors`` keys.
"""

from __future__ import annotations

import json
import re
from pathlib import Path

import yaml

from implindex.registry.models import ShardMapping, entry_from_wire, entry_to_wire

_ASSIGNMENT_RE = re.compile(r'implementors\["((?:[^"\\]|\\.)*)"\]\s*=\s*')

_PREAMBLE = "(function() {var implementors = {};"
_HANDOFF = (
    "if (window.register_implementors) {window.register_implementors(implementors);} "
    "else {window.pending_implementors = implementors;}})()"
)

DOCUMENT_SUFFIXES = {".yaml", ".yml", ".json"}


class ShardFormatError(ValueError):
    """Raised when a shard file cannot be decoded."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


def parse_shard(text: str, capability: str = "", source: str = "") -> ShardMapping:
    """Decode the text of a generated shard file.

    Assignments are read in file order; a library assigned twice keeps
    the later list.
    """
    decoder = json.JSONDecoder()
    libraries: dict[str, list] = {}

    for match in _ASSIGNMENT_RE.finditer(text):
        library = json.loads(f'"{match.group(1)}"')
        try:
            raw, _ = decoder.raw_decode(text, match.end())
        except json.JSONDecodeError as e:
            raise ShardFormatError(f"bad implementor list for {library!r}: {e.msg}", source) from e
        if not isinstance(raw, list):
            raise ShardFormatError(f"implementors for {library!r} is not a list", source)
        libraries[library] = [entry_from_wire(item) for item in raw]

    if not libraries:
        raise ShardFormatError("no implementor assignments found", source)

    return ShardMapping(capability=capability, libraries=libraries)


def render_shard(shard: ShardMapping) -> str:
    """Encode a shard in the generated file format."""
    lines = [_PREAMBLE]
    for library, entries in shard.libraries.items():
        payload = json.dumps(
            [entry_to_wire(e) for e in entries],
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        )
        lines.append(f"implementors[{json.dumps(library)}] = {payload};")
    lines.append(_HANDOFF)
    return "\n".join(lines)


def capability_from_path(path: str | Path) -> str:
    """Derive the capability name from a shard's location.

    ``implementors/core/fmt/trait.Display.js`` -> ``core::fmt::Display``
    """
    path = Path(path)
    name = path.name
    for suffix in (".js", *DOCUMENT_SUFFIXES):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    if name.startswith("trait."):
        name = name[len("trait."):]

    parts = path.parts
    if "implementors" not in parts:
        return name
    start = len(parts) - 1 - parts[::-1].index("implementors") + 1
    return "::".join([*parts[start:-1], name])


def load_shard_file(path: str | Path, capability: str | None = None) -> ShardMapping:
    """Read a shard from a generated ``.js`` file or a YAML/JSON document."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ShardFormatError(f"not UTF-8 text: {e.reason}", str(path)) from e

    if path.suffix in DOCUMENT_SUFFIXES:
        return _parse_document(text, capability, str(path))

    return parse_shard(text, capability or capability_from_path(path), str(path))


def _parse_document(text: str, capability: str | None, source: str) -> ShardMapping:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ShardFormatError(f"invalid document: {e}", source) from e

    if not isinstance(data, dict) or not isinstance(data.get("implementors"), dict):
        raise ShardFormatError("document needs an 'implementors' mapping", source)

    libraries = {}
    for lib, entries in data["implementors"].items():
        if entries is not None and not isinstance(entries, list):
            raise ShardFormatError(f"implementors for {lib!r} is not a list", source)
        libraries[str(lib)] = [entry_from_wire(e) for e in entries or []]

    return ShardMapping(
        capability=capability or str(data.get("capability") or "") or capability_from_path(source),
        libraries=libraries,
    )
