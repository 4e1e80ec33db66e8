"""Shared fixtures: hand-written compiler output."""

import json

import pytest

# (module) with no sections
EMPTY_MODULE = bytes([0x00, 0x61, 0x73, 0x6D, 0x01, 0x00, 0x00, 0x00])

# (module (func (export "sub") (param i32 i32) (result i32) ...i32.sub))
SUB_MODULE = (
    EMPTY_MODULE
    + bytes([0x01, 0x07, 0x01, 0x60, 0x02, 0x7F, 0x7F, 0x01, 0x7F])
    + bytes([0x03, 0x02, 0x01, 0x00])
    + bytes([0x07, 0x07, 0x01, 0x03]) + b"sub" + bytes([0x00, 0x00])
    + bytes([0x0A, 0x09, 0x01, 0x07, 0x00, 0x20, 0x00, 0x20, 0x01, 0x6B, 0x0B])
)


def i32(value: int) -> dict:
    return {"type": "i32", "value": str(value & 0xFFFFFFFF)}


def invoke(field: str, *args, module=None) -> dict:
    action = {"type": "invoke", "field": field, "args": list(args)}
    if module is not None:
        action["module"] = module
    return action


SUB_COMMANDS = [
    {"type": "module", "line": 1, "filename": "test.0.wasm"},
    {
        "type": "assert_return",
        "line": 3,
        "action": invoke("sub", i32(8), i32(3)),
        "expected": [i32(5)],
    },
]


def spec_json(commands, source_filename="test.wast") -> str:
    return json.dumps({"source_filename": source_filename, "commands": commands})


@pytest.fixture
def sub_json() -> str:
    return spec_json(SUB_COMMANDS)


@pytest.fixture
def sub_modules() -> dict:
    return {"test.0.wasm": SUB_MODULE}
