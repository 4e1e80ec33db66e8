"""Visitor-driven traversal of a whole wast script.

Module binaries are read from disk for each command that references them
instead of being held in memory, which suits large suites. The run stops at
the first error, whether it comes from the infrastructure or from the
visitor.
"""

import logging
import tempfile
from pathlib import Path

from .compiler import WAST_SUFFIX, Features, compile_script_to_dir
from .errors import CallbackError, ScriptIOError, UsageError
from .intermediate import Spec, load_spec
from .normalizer import normalize_command
from .store import DirectoryModuleSource
from .types import (
    AssertExhaustion,
    AssertInvalid,
    AssertMalformed,
    AssertReturn,
    AssertReturnArithmeticNan,
    AssertReturnCanonicalNan,
    AssertTrap,
    AssertUninstantiable,
    AssertUnlinkable,
    Command,
    Module,
    PerformAction,
    Register,
)
from .values import NativeF32, NativeF64

logger = logging.getLogger(__name__)


class Visitor:
    """Base class for spec script visitors.

    Override the callbacks of interest; the rest do nothing. Raising from a
    callback aborts the run with a ``CallbackError`` wrapping the exception.
    """

    def begin_spec(self, source_filename: str) -> None:
        """Called once before the first command."""

    def module(self, line: int, wasm: bytes, name: str | None) -> None:
        """Define a module, optionally under a name."""

    def assert_return(self, line: int, action, expected) -> None:
        pass

    def assert_return_canonical_nan(self, line: int, action) -> None:
        pass

    def assert_return_arithmetic_nan(self, line: int, action) -> None:
        pass

    def assert_exhaustion(self, line: int, action) -> None:
        pass

    def assert_trap(self, line: int, action, text: str) -> None:
        pass

    def assert_invalid(self, line: int, wasm: bytes, text: str) -> None:
        pass

    def assert_malformed(self, line: int, wasm: bytes, text: str) -> None:
        pass

    def assert_unlinkable(self, line: int, wasm: bytes, text: str) -> None:
        pass

    def assert_uninstantiable(self, line: int, wasm: bytes, text: str) -> None:
        pass

    def register(self, line: int, name: str | None, as_name: str) -> None:
        """Register a module (or the last defined one) as ``as_name``."""

    def perform_action(self, line: int, action) -> None:
        pass


def _callback(visitor: Visitor, command: Command):
    """Pick the visitor method and its arguments for a command."""
    line, kind = command.line, command.kind
    if isinstance(kind, Module):
        return visitor.module, (line, kind.module.into_bytes(), kind.name)
    if isinstance(kind, AssertReturn):
        return visitor.assert_return, (line, kind.action, list(kind.expected))
    if isinstance(kind, AssertReturnCanonicalNan):
        return visitor.assert_return_canonical_nan, (line, kind.action)
    if isinstance(kind, AssertReturnArithmeticNan):
        return visitor.assert_return_arithmetic_nan, (line, kind.action)
    if isinstance(kind, AssertExhaustion):
        return visitor.assert_exhaustion, (line, kind.action)
    if isinstance(kind, AssertTrap):
        return visitor.assert_trap, (line, kind.action, kind.message)
    if isinstance(kind, AssertInvalid):
        return visitor.assert_invalid, (line, kind.module.into_bytes(), kind.message)
    if isinstance(kind, AssertMalformed):
        return visitor.assert_malformed, (line, kind.module.into_bytes(), kind.message)
    if isinstance(kind, AssertUnlinkable):
        return visitor.assert_unlinkable, (line, kind.module.into_bytes(), kind.message)
    if isinstance(kind, AssertUninstantiable):
        return visitor.assert_uninstantiable, (
            line,
            kind.module.into_bytes(),
            kind.message,
        )
    if isinstance(kind, Register):
        return visitor.register, (line, kind.name, kind.as_name)
    if isinstance(kind, PerformAction):
        return visitor.perform_action, (line, kind.action)
    raise TypeError(f"Unhandled command kind: {kind!r}")


def visit_spec(
    spec: Spec | str | bytes,
    root: Path,
    visitor: Visitor,
    f32=NativeF32,
    f64=NativeF64,
) -> None:
    """Walk every command of ``spec`` in order and call ``visitor``.

    ``root`` is the directory holding the module binaries the commands
    reference.
    """
    if not isinstance(spec, Spec):
        spec = load_spec(spec)
    modules = DirectoryModuleSource(root)

    try:
        visitor.begin_spec(spec.source_filename)
    except Exception as e:
        raise CallbackError(e) from e

    for raw in spec.commands:
        command = normalize_command(raw, modules, f32, f64)
        logger.debug("Visiting line %d: %s", command.line, type(command.kind).__name__)
        method, args = _callback(visitor, command)
        try:
            method(*args)
        except Exception as e:
            raise CallbackError(e, command.line) from e


def run_spec(
    path: Path | str,
    visitor: Visitor,
    features: Features | None = None,
    f32=NativeF32,
    f64=NativeF64,
) -> None:
    """Compile the ``.wast`` script at ``path`` and visit its commands."""
    path = Path(path)
    if not path.exists():
        raise ScriptIOError(f"Path {path} doesn't exist")
    if path.suffix != WAST_SUFFIX:
        raise UsageError(f"Provided {path} should have .wast extension")

    with tempfile.TemporaryDirectory(prefix=f"spec-testsuite-{path.stem}-") as tmp:
        json_path = compile_script_to_dir(path, Path(tmp), features)
        try:
            json_text = json_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ScriptIOError(f"Failed to read compiler output {json_path}: {e}") from e
        visit_spec(load_spec(json_text), Path(tmp), visitor, f32, f64)
