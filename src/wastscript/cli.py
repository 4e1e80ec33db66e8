"""Print the normalized command stream of a wast script.

Usage:
    wastscript tests/core/i32.wast
    wastscript --json --raw-floats tests/core/f32.wast
    python -m wastscript --enable simd simd_const.wast
"""

import argparse
import json
import logging
import math
import sys

from . import __version__
from .compiler import Features
from .errors import ScriptError
from .parser import ScriptParser
from .types import ModuleBinary
from .values import F32, F64, NativeF32, NativeF64, RawF32, RawF64

logger = logging.getLogger(__name__)


def log_level(s: str) -> int:
    """Convert a level name such as ``debug`` to its logging constant."""
    numeric_level = getattr(logging, s.upper(), None)
    if not isinstance(numeric_level, int):
        raise argparse.ArgumentTypeError(f"Invalid log level: {s}")
    return numeric_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wastscript", description=__doc__.splitlines()[0])
    parser.add_argument("script", help="wast script to decode")
    parser.add_argument(
        "--json", action="store_true", help="print one JSON object per command"
    )
    parser.add_argument(
        "--raw-floats",
        action="store_true",
        help="keep float values as exact bit patterns",
    )
    parser.add_argument(
        "--enable-all", action="store_true", help="enable every compiler feature"
    )
    parser.add_argument(
        "--enable",
        metavar="FEATURE",
        action="append",
        default=[],
        choices=Features.names(),
        help="enable a compiler feature (repeatable)",
    )
    parser.add_argument(
        "--disable",
        metavar="FEATURE",
        action="append",
        default=[],
        choices=Features.names(),
        help="disable a compiler feature (repeatable)",
    )
    parser.add_argument(
        "--log", metavar="LEVEL", type=log_level, default="warning", help="log level"
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="increase verbosity"
    )
    parser.add_argument("--version", "-V", action="version", version=__version__)
    return parser


def features_from_args(args) -> Features:
    features = Features(enable_all=args.enable_all)
    for name in args.enable:
        features.set(name, True)
    for name in args.disable:
        features.set(name, False)
    return features


def to_jsonable(obj):
    """Turn command payloads into plain JSON data."""
    if isinstance(obj, ModuleBinary):
        return {"size": len(obj), "magic": obj.into_bytes()[:4].hex()}
    if isinstance(obj, (RawF32, RawF64)):
        return {"bits": obj.to_bits()}
    if isinstance(obj, float):
        # JSON has no NaN or infinity literals
        return obj if math.isfinite(obj) else repr(obj)
    if isinstance(obj, (F32, F64)):
        return {"type": type(obj).__name__.lower(), "value": to_jsonable(obj.value)}
    if hasattr(obj, "__dataclass_fields__"):
        data = {"kind": type(obj).__name__}
        for name in obj.__dataclass_fields__:
            data[name] = to_jsonable(getattr(obj, name))
        return data
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    return obj


def describe(kind) -> str:
    fields = [f"{name}={getattr(kind, name)!r}" for name in kind.__dataclass_fields__]
    return f"{type(kind).__name__} {' '.join(fields)}"


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.DEBUG if args.verbose > 0 else args.log
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    f32, f64 = (RawF32, RawF64) if args.raw_floats else (NativeF32, NativeF64)
    try:
        parser = ScriptParser.from_file(
            args.script, features=features_from_args(args), f32=f32, f64=f64
        )
        for command in parser:
            if args.json:
                print(json.dumps({"line": command.line, **to_jsonable(command.kind)}))
            else:
                print(f"{command.line}: {describe(command.kind)}")
    except ScriptError as e:
        logger.debug("Decoding failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0
