"""Tests for the visitor-driven batch runner."""

import json
from unittest.mock import patch

import pytest

from conftest import EMPTY_MODULE, SUB_COMMANDS, SUB_MODULE, i32, invoke, spec_json
from wastscript.errors import (
    CallbackError,
    MalformedIntermediateForm,
    ScriptIOError,
    UsageError,
    ValueParseError,
    WithLineInfo,
)
from wastscript.intermediate import load_spec
from wastscript.runner import Visitor, run_spec, visit_spec
from wastscript.types import Invoke
from wastscript.values import F32, I32, RawF32


class RecordingVisitor(Visitor):
    """Records every callback as (name, args)."""

    def __init__(self):
        self.calls = []

    def begin_spec(self, source_filename):
        self.calls.append(("begin_spec", source_filename))

    def module(self, line, wasm, name):
        self.calls.append(("module", line, wasm, name))

    def assert_return(self, line, action, expected):
        self.calls.append(("assert_return", line, action, expected))

    def assert_return_canonical_nan(self, line, action):
        self.calls.append(("assert_return_canonical_nan", line, action))

    def assert_return_arithmetic_nan(self, line, action):
        self.calls.append(("assert_return_arithmetic_nan", line, action))

    def assert_exhaustion(self, line, action):
        self.calls.append(("assert_exhaustion", line, action))

    def assert_trap(self, line, action, text):
        self.calls.append(("assert_trap", line, action, text))

    def assert_invalid(self, line, wasm, text):
        self.calls.append(("assert_invalid", line, wasm, text))

    def assert_malformed(self, line, wasm, text):
        self.calls.append(("assert_malformed", line, wasm, text))

    def assert_unlinkable(self, line, wasm, text):
        self.calls.append(("assert_unlinkable", line, wasm, text))

    def assert_uninstantiable(self, line, wasm, text):
        self.calls.append(("assert_uninstantiable", line, wasm, text))

    def register(self, line, name, as_name):
        self.calls.append(("register", line, name, as_name))

    def perform_action(self, line, action):
        self.calls.append(("perform_action", line, action))


class TrapFailure(Exception):
    pass


class FailingTrapVisitor(RecordingVisitor):
    def __init__(self):
        super().__init__()
        self.error = TrapFailure("did not trap")

    def assert_trap(self, line, action, text):
        super().assert_trap(line, action, text)
        raise self.error


ALL_COMMANDS = [
    {"type": "module", "line": 1, "name": "$M", "filename": "t.0.wasm"},
    {"type": "assert_return", "line": 2, "action": invoke("sub", i32(8), i32(3)), "expected": [i32(5)]},
    {"type": "assert_return_canonical_nan", "line": 3, "action": invoke("nan")},
    {"type": "assert_return_arithmetic_nan", "line": 4, "action": invoke("nan")},
    {"type": "assert_exhaustion", "line": 5, "action": invoke("loop")},
    {"type": "assert_trap", "line": 6, "action": invoke("div"), "text": "integer divide by zero"},
    {"type": "assert_invalid", "line": 7, "filename": "t.1.wasm", "text": "type mismatch"},
    {"type": "assert_malformed", "line": 8, "filename": "t.1.wasm", "text": "unexpected end"},
    {"type": "assert_unlinkable", "line": 9, "filename": "t.1.wasm", "text": "unknown import"},
    {"type": "assert_uninstantiable", "line": 10, "filename": "t.1.wasm", "text": "unreachable"},
    {"type": "register", "line": 11, "name": "$M", "as": "M"},
    {"type": "action", "line": 12, "action": {"type": "get", "module": "$M", "field": "g"}},
]


@pytest.fixture
def root(tmp_path):
    (tmp_path / "t.0.wasm").write_bytes(SUB_MODULE)
    (tmp_path / "t.1.wasm").write_bytes(EMPTY_MODULE)
    return tmp_path


class TestVisitSpec:
    def test_dispatches_every_command_in_order(self, root):
        visitor = RecordingVisitor()
        visit_spec(spec_json(ALL_COMMANDS, "all.wast"), root, visitor)
        names = [call[0] for call in visitor.calls]
        assert names == [
            "begin_spec",
            "module",
            "assert_return",
            "assert_return_canonical_nan",
            "assert_return_arithmetic_nan",
            "assert_exhaustion",
            "assert_trap",
            "assert_invalid",
            "assert_malformed",
            "assert_unlinkable",
            "assert_uninstantiable",
            "register",
            "perform_action",
        ]
        assert visitor.calls[0] == ("begin_spec", "all.wast")
        assert visitor.calls[1] == ("module", 1, SUB_MODULE, "$M")
        assert visitor.calls[2] == (
            "assert_return",
            2,
            Invoke(None, "sub", (I32(8), I32(3))),
            [I32(5)],
        )
        assert visitor.calls[7] == ("assert_invalid", 7, EMPTY_MODULE, "type mismatch")
        assert visitor.calls[11] == ("register", 11, "$M", "M")

    def test_accepts_loaded_spec(self, root):
        (root / "test.0.wasm").write_bytes(SUB_MODULE)
        visitor = RecordingVisitor()
        visit_spec(load_spec(spec_json(SUB_COMMANDS)), root, visitor)
        assert [call[0] for call in visitor.calls] == ["begin_spec", "module", "assert_return"]

    def test_default_callbacks_do_nothing(self, root):
        visit_spec(spec_json(ALL_COMMANDS), root, Visitor())

    def test_reads_modules_fresh(self, root):
        class Replacing(RecordingVisitor):
            def module(self, line, wasm, name):
                super().module(line, wasm, name)
                (root / "t.1.wasm").write_bytes(b"changed")

        commands = [ALL_COMMANDS[0], ALL_COMMANDS[6]]
        visitor = Replacing()
        visit_spec(spec_json(commands), root, visitor)
        assert visitor.calls[-1] == ("assert_invalid", 7, b"changed", "type mismatch")

    def test_float_representation(self, root):
        commands = [
            {
                "type": "assert_return",
                "line": 1,
                "action": invoke("f"),
                "expected": [{"type": "f32", "value": str(0x7FA00000)}],
            }
        ]
        visitor = RecordingVisitor()
        visit_spec(spec_json(commands), root, visitor, f32=RawF32)
        assert visitor.calls[-1][3] == [F32(RawF32(0x7FA00000))]


class TestVisitSpecErrors:
    def test_callback_error_stops_run(self, root):
        visitor = FailingTrapVisitor()
        with pytest.raises(CallbackError) as excinfo:
            visit_spec(spec_json(ALL_COMMANDS), root, visitor)
        assert excinfo.value.error is visitor.error
        assert excinfo.value.line == 6
        assert excinfo.value.__cause__ is visitor.error
        assert visitor.calls[-1][0] == "assert_trap"
        assert len(visitor.calls) == 7

    def test_begin_spec_error(self, root):
        class Failing(Visitor):
            def begin_spec(self, source_filename):
                raise RuntimeError("nope")

        with pytest.raises(CallbackError) as excinfo:
            visit_spec(spec_json(ALL_COMMANDS), root, Failing())
        assert excinfo.value.line is None
        assert isinstance(excinfo.value.error, RuntimeError)

    def test_missing_module_file_is_io_error(self, tmp_path):
        visitor = RecordingVisitor()
        with pytest.raises(WithLineInfo) as excinfo:
            visit_spec(spec_json(ALL_COMMANDS), tmp_path, visitor)
        assert isinstance(excinfo.value.error, ScriptIOError)
        assert excinfo.value.line == 1
        assert [call[0] for call in visitor.calls] == ["begin_spec"]

    def test_decode_error_is_not_callback_error(self, root):
        commands = [
            {"type": "action", "line": 3, "action": invoke("f", {"type": "i32", "value": "-1"})}
        ]
        with pytest.raises(WithLineInfo) as excinfo:
            visit_spec(spec_json(commands), root, RecordingVisitor())
        assert isinstance(excinfo.value.error, ValueParseError)

    def test_malformed_json(self, root):
        with pytest.raises(MalformedIntermediateForm):
            visit_spec("not json", root, RecordingVisitor())


class TestRunSpec:
    def test_missing_path(self, tmp_path):
        with pytest.raises(ScriptIOError, match="doesn't exist"):
            run_spec(tmp_path / "missing.wast", Visitor())

    def test_requires_wast_suffix(self, tmp_path):
        path = tmp_path / "script.wat"
        path.write_text("(module)")
        with pytest.raises(UsageError):
            run_spec(path, Visitor())

    def test_compiles_into_temporary_directory(self, tmp_path):
        script = tmp_path / "sub.wast"
        script.write_text("(module)")
        seen = {}

        def fake_compile(path, out_dir, features=None):
            seen["out_dir"] = out_dir
            (out_dir / "sub.0.wasm").write_bytes(SUB_MODULE)
            json_path = out_dir / "sub.json"
            json_path.write_text(
                json.dumps(
                    {
                        "source_filename": "sub.wast",
                        "commands": [{"type": "module", "line": 1, "filename": "sub.0.wasm"}],
                    }
                )
            )
            return json_path

        visitor = RecordingVisitor()
        with patch("wastscript.runner.compile_script_to_dir", side_effect=fake_compile):
            run_spec(script, visitor)

        assert visitor.calls == [("begin_spec", "sub.wast"), ("module", 1, SUB_MODULE, None)]
        assert not seen["out_dir"].exists()
