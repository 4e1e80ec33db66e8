"""Map the compiler's JSON command objects onto ``Command`` values."""

from .errors import MalformedIntermediateForm, ScriptError, WithLineInfo
from .intermediate import decode_field, fragment, optional, require
from .types import (
    Action,
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
    CommandKind,
    Get,
    Invoke,
    Module,
    PerformAction,
    Register,
)
from .values import NAN_ARITHMETIC, NAN_CANONICAL, NativeF32, NativeF64, parse_value_list


def parse_action(raw: dict, f32=NativeF32, f64=NativeF64) -> Action:
    """Decode an ``{"type": "invoke" | "get", ...}`` action object."""
    if not isinstance(raw, dict):
        raise MalformedIntermediateForm(f"Malformed action: {fragment(raw)}")
    action_type = require(raw, "type", str)
    module = optional(raw, "module", str)
    field = decode_field(require(raw, "field", str))

    if action_type == "invoke":
        args = raw.get("args", [])
        return Invoke(module, field, tuple(parse_value_list(args, f32, f64)))
    if action_type == "get":
        return Get(module, field)
    raise MalformedIntermediateForm(f"Unknown action type {action_type!r} in {fragment(raw)}")


def _nan_pattern(expected) -> str | None:
    """Return the NaN pattern text of a lone ``nan:*`` expected value."""
    if isinstance(expected, list) and len(expected) == 1:
        value = expected[0]
        if isinstance(value, dict) and value.get("value") in (NAN_CANONICAL, NAN_ARITHMETIC):
            return value["value"]
    return None


def _assert_return(raw, modules, f32, f64) -> CommandKind:
    action = parse_action(require(raw, "action", dict), f32, f64)
    expected = raw.get("expected", [])
    # Newer compilers fold the NaN assertions into assert_return
    pattern = _nan_pattern(expected)
    if pattern == NAN_CANONICAL:
        return AssertReturnCanonicalNan(action)
    if pattern == NAN_ARITHMETIC:
        return AssertReturnArithmeticNan(action)
    return AssertReturn(action, tuple(parse_value_list(expected, f32, f64)))


def _action_command(kind):
    def handler(raw, modules, f32, f64) -> CommandKind:
        return kind(parse_action(require(raw, "action", dict), f32, f64))

    return handler


def _assert_trap(raw, modules, f32, f64) -> CommandKind:
    action = parse_action(require(raw, "action", dict), f32, f64)
    return AssertTrap(action, require(raw, "text", str))


def _module(raw, modules, f32, f64) -> CommandKind:
    module = modules.load(require(raw, "filename", str))
    return Module(module, optional(raw, "name", str))


def _module_assertion(kind):
    def handler(raw, modules, f32, f64) -> CommandKind:
        module = modules.load(require(raw, "filename", str))
        return kind(module, require(raw, "text", str))

    return handler


def _register(raw, modules, f32, f64) -> CommandKind:
    # The compiler writes the alias under "as"
    key = "as" if "as" in raw else "as_name"
    return Register(optional(raw, "name", str), require(raw, key, str))


_HANDLERS = {
    "module": _module,
    "assert_return": _assert_return,
    "assert_return_canonical_nan": _action_command(AssertReturnCanonicalNan),
    "assert_return_arithmetic_nan": _action_command(AssertReturnArithmeticNan),
    "assert_trap": _assert_trap,
    "assert_invalid": _module_assertion(AssertInvalid),
    "assert_malformed": _module_assertion(AssertMalformed),
    "assert_uninstantiable": _module_assertion(AssertUninstantiable),
    "assert_exhaustion": _action_command(AssertExhaustion),
    "assert_unlinkable": _module_assertion(AssertUnlinkable),
    "register": _register,
    "action": _action_command(PerformAction),
}

COMMAND_TYPES = tuple(_HANDLERS)


def normalize_command(raw: dict, modules, f32=NativeF32, f64=NativeF64) -> Command:
    """Build a ``Command`` from one JSON command object.

    ``modules`` is anything with a ``load(filename)`` method returning a
    ``ModuleBinary``. Failures after the line number is known are raised as
    ``WithLineInfo`` wrapping the underlying error.
    """
    if not isinstance(raw, dict):
        raise MalformedIntermediateForm(f"Malformed command: {fragment(raw)}")
    line = require(raw, "line", int)
    try:
        command_type = require(raw, "type", str)
        handler = _HANDLERS.get(command_type)
        if handler is None:
            raise MalformedIntermediateForm(
                f"Unknown command type {command_type!r} in {fragment(raw)}"
            )
        kind = handler(raw, modules, f32, f64)
    except ScriptError as e:
        raise WithLineInfo(line, e) from e
    return Command(line, kind)
