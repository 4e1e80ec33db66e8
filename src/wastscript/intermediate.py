"""The compiler's intermediate JSON form and accessors for its fields."""

import json
from dataclasses import dataclass, field
from typing import Any

from .errors import MalformedIntermediateForm


@dataclass
class Spec:
    """Top-level JSON document written by the compiler for one script."""

    source_filename: str
    commands: list[dict] = field(default_factory=list)


def load_spec(text: str | bytes) -> Spec:
    """Parse the compiler's JSON output and check its top-level shape."""
    try:
        document = json.loads(text)
    except ValueError as e:
        raise MalformedIntermediateForm(f"Compiler output is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise MalformedIntermediateForm(f"Expected a JSON object: {fragment(document)}")

    source_filename = require(document, "source_filename", str)
    commands = require(document, "commands", list)
    if not all(isinstance(c, dict) for c in commands):
        raise MalformedIntermediateForm(f"Malformed command list: {fragment(commands)}")
    return Spec(source_filename, commands)


def fragment(raw: Any, limit: int = 400) -> str:
    """Render a piece of JSON for an error message."""
    try:
        text = json.dumps(raw, sort_keys=True)
    except (TypeError, ValueError):
        text = repr(raw)
    if len(text) > limit:
        text = text[:limit] + "..."
    return text


def require(raw: dict, key: str, kind: type | tuple[type, ...]):
    """Fetch a required key of the given JSON type."""
    if key not in raw:
        raise MalformedIntermediateForm(f"Missing {key!r} in {fragment(raw)}")
    value = raw[key]
    # bool is an int subclass; it is never a valid line number
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is int):
        raise MalformedIntermediateForm(f"Unexpected type for {key!r} in {fragment(raw)}")
    return value


def optional(raw: dict, key: str, kind: type | tuple[type, ...]):
    """Fetch an optional key; JSON null and absence both give ``None``."""
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, kind):
        raise MalformedIntermediateForm(f"Unexpected type for {key!r} in {fragment(raw)}")
    return value


def decode_field(text: str) -> str:
    """Re-decode a field name the way the compiler escaped it.

    The compiler writes each UTF-8 byte of a name as its own ``\\u00XX``
    escape, so the decoded JSON string holds one character per byte. Each
    character is narrowed to a byte and the result decoded as UTF-8 again.
    Characters above U+00FF are truncated to their low byte, which is only
    right for names the compiler escaped this way.
    """
    data = bytes(ord(c) & 0xFF for c in text)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedIntermediateForm(
            f"Field name is not byte-escaped UTF-8: {fragment(text)}"
        ) from e
