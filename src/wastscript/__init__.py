"""Decoder for WebAssembly script (.wast) test suites.

Turns the output of the ``wast2json`` compiler into typed, ordered test
commands for a conformance harness to execute.
"""

__version__ = "0.1.0"

from .errors import (
    ScriptError,
    ScriptIOError,
    CompilerError,
    MalformedIntermediateForm,
    ValueDecodeError,
    ValueParseError,
    UnknownValueType,
    UsageError,
    CallbackError,
    WithLineInfo,
)
from .values import (
    I32,
    I64,
    F32,
    F64,
    Value,
    NativeF32,
    NativeF64,
    NumpyF32,
    NumpyF64,
    RawF32,
    RawF64,
    canonicalize_nan_bits,
    decode_value,
    parse_value,
)
from .types import (
    Invoke,
    Get,
    Action,
    ModuleBinary,
    Command,
    CommandKind,
    Module,
    AssertReturn,
    AssertReturnCanonicalNan,
    AssertReturnArithmeticNan,
    AssertTrap,
    AssertInvalid,
    AssertMalformed,
    AssertUninstantiable,
    AssertExhaustion,
    AssertUnlinkable,
    Register,
    PerformAction,
)
from .store import ModuleBinaryStore, DirectoryModuleSource
from .compiler import Features, CompiledScript, compile_script, compile_script_to_dir
from .normalizer import normalize_command, parse_action
from .parser import ScriptParser
from .runner import Visitor, run_spec, visit_spec

__all__ = [
    # Main API
    "ScriptParser",
    "Visitor",
    "run_spec",
    "visit_spec",
    "Features",
    "compile_script",
    "compile_script_to_dir",
    "CompiledScript",
    "normalize_command",
    "parse_action",
    # Values
    "Value",
    "I32",
    "I64",
    "F32",
    "F64",
    "NativeF32",
    "NativeF64",
    "NumpyF32",
    "NumpyF64",
    "RawF32",
    "RawF64",
    "canonicalize_nan_bits",
    "decode_value",
    "parse_value",
    # Commands
    "Command",
    "CommandKind",
    "Action",
    "Invoke",
    "Get",
    "ModuleBinary",
    "ModuleBinaryStore",
    "DirectoryModuleSource",
    "Module",
    "AssertReturn",
    "AssertReturnCanonicalNan",
    "AssertReturnArithmeticNan",
    "AssertTrap",
    "AssertInvalid",
    "AssertMalformed",
    "AssertUninstantiable",
    "AssertExhaustion",
    "AssertUnlinkable",
    "Register",
    "PerformAction",
    # Errors
    "ScriptError",
    "ScriptIOError",
    "CompilerError",
    "MalformedIntermediateForm",
    "ValueDecodeError",
    "ValueParseError",
    "UnknownValueType",
    "UsageError",
    "CallbackError",
    "WithLineInfo",
]
