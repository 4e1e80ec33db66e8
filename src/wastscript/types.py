"""Command, action and module types produced from a wast script."""

from dataclasses import dataclass

from .values import Value


@dataclass(frozen=True)
class Invoke:
    """Invoke an exported function.

    ``module`` of ``None`` means the most recently defined module.
    """

    module: str | None
    field: str
    args: tuple[Value, ...] = ()


@dataclass(frozen=True)
class Get:
    """Read an exported global."""

    module: str | None
    field: str


Action = Invoke | Get


class ModuleBinary:
    """Immutable binary representation of one compiled wasm module."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def into_bytes(self) -> bytes:
        return self._data

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index):
        return self._data[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, ModuleBinary):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"ModuleBinary({len(self._data)} bytes)"


@dataclass(frozen=True)
class Module:
    """Define, validate and instantiate a module, optionally under a name."""

    module: ModuleBinary
    name: str | None = None


@dataclass(frozen=True)
class AssertReturn:
    action: Action
    expected: tuple[Value, ...] = ()


@dataclass(frozen=True)
class AssertReturnCanonicalNan:
    action: Action


@dataclass(frozen=True)
class AssertReturnArithmeticNan:
    action: Action


@dataclass(frozen=True)
class AssertTrap:
    action: Action
    message: str


@dataclass(frozen=True)
class AssertInvalid:
    module: ModuleBinary
    message: str


@dataclass(frozen=True)
class AssertMalformed:
    module: ModuleBinary
    message: str


@dataclass(frozen=True)
class AssertUninstantiable:
    module: ModuleBinary
    message: str


@dataclass(frozen=True)
class AssertExhaustion:
    action: Action


@dataclass(frozen=True)
class AssertUnlinkable:
    module: ModuleBinary
    message: str


@dataclass(frozen=True)
class Register:
    """Register a module (or the last defined one) under ``as_name``."""

    name: str | None
    as_name: str


@dataclass(frozen=True)
class PerformAction:
    action: Action


CommandKind = (
    Module
    | AssertReturn
    | AssertReturnCanonicalNan
    | AssertReturnArithmeticNan
    | AssertTrap
    | AssertInvalid
    | AssertMalformed
    | AssertUninstantiable
    | AssertExhaustion
    | AssertUnlinkable
    | Register
    | PerformAction
)


@dataclass(frozen=True)
class Command:
    """One top-level form of the script and the line it starts on."""

    line: int
    kind: CommandKind
