"""Typed runtime values decoded from the compiler's bit-pattern literals.

The compiler writes every numeric literal as the decimal text of its unsigned
bit pattern, e.g. f32 ``1.0`` is written as ``"1065353216"``. Integers are
reinterpreted as signed; floats go through a pluggable representation so the
caller decides between native floats and exact bit patterns.
"""

import re
import struct
from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import MalformedIntermediateForm, UnknownValueType, ValueParseError


VALTYPE_I32 = "i32"
VALTYPE_I64 = "i64"
VALTYPE_F32 = "f32"
VALTYPE_F64 = "f64"

MASK_32 = 0xFFFFFFFF
MASK_64 = 0xFFFFFFFFFFFFFFFF

# (exponent mask, fraction mask, quiet bit) per float width
F32_EXP_MASK = 0x7F800000
F32_FRACT_MASK = 0x007FFFFF
F32_QNAN_BIT = 0x00400000
F64_EXP_MASK = 0x7FF0000000000000
F64_FRACT_MASK = 0x000FFFFFFFFFFFFF
F64_QNAN_BIT = 0x0008000000000000

_FLOAT_MASKS = {
    32: (F32_EXP_MASK, F32_FRACT_MASK, F32_QNAN_BIT),
    64: (F64_EXP_MASK, F64_FRACT_MASK, F64_QNAN_BIT),
}

NAN_CANONICAL = "nan:canonical"
NAN_ARITHMETIC = "nan:arithmetic"

_UNSIGNED_DECIMAL = re.compile(r"\+?[0-9]+")


def is_nan_bits(bits: int, width: int) -> bool:
    """Check whether a float bit pattern encodes a NaN."""
    exp_mask, fract_mask, _ = _FLOAT_MASKS[width]
    return bits & exp_mask == exp_mask and bits & fract_mask != 0


def canonicalize_nan_bits(bits: int, width: int) -> int:
    """Force the quiet bit on NaN patterns; other patterns are returned as is.

    Signaling NaNs become quiet NaNs with the same payload otherwise. The
    operation is idempotent.
    """
    if is_nan_bits(bits, width):
        bits |= _FLOAT_MASKS[width][2]
    return bits


def f32_from_bits(bits: int) -> float:
    """Convert a 32-bit pattern to a Python float, quieting signaling NaNs."""
    bits = canonicalize_nan_bits(bits & MASK_32, 32)
    (value,) = struct.unpack("<f", struct.pack("<I", bits))
    return value


def f64_from_bits(bits: int) -> float:
    """Convert a 64-bit pattern to a Python float, quieting signaling NaNs."""
    bits = canonicalize_nan_bits(bits & MASK_64, 64)
    (value,) = struct.unpack("<d", struct.pack("<Q", bits))
    return value


def f32_to_bits(value: float) -> int:
    (bits,) = struct.unpack("<I", struct.pack("<f", value))
    return bits


def f64_to_bits(value: float) -> int:
    (bits,) = struct.unpack("<Q", struct.pack("<d", value))
    return bits


class NativeF32:
    """f32 as a Python ``float`` (lossy: signaling NaNs are quieted)."""

    @staticmethod
    def from_bits(bits: int) -> float:
        return f32_from_bits(bits)


class NativeF64:
    """f64 as a Python ``float`` (lossy: signaling NaNs are quieted)."""

    @staticmethod
    def from_bits(bits: int) -> float:
        return f64_from_bits(bits)


class NumpyF32:
    """f32 as a ``numpy.float32`` scalar (lossy: signaling NaNs are quieted)."""

    @staticmethod
    def from_bits(bits: int) -> np.float32:
        bits = canonicalize_nan_bits(bits & MASK_32, 32)
        return np.uint32(bits).view(np.float32)


class NumpyF64:
    """f64 as a ``numpy.float64`` scalar (lossy: signaling NaNs are quieted)."""

    @staticmethod
    def from_bits(bits: int) -> np.float64:
        bits = canonicalize_nan_bits(bits & MASK_64, 64)
        return np.uint64(bits).view(np.float64)


@dataclass(frozen=True)
class RawF32:
    """f32 kept as its exact bit pattern."""

    bits: int

    @classmethod
    def from_bits(cls, bits: int) -> "RawF32":
        return cls(bits & MASK_32)

    def to_bits(self) -> int:
        return self.bits

    def to_float(self) -> float:
        (value,) = struct.unpack("<f", struct.pack("<I", self.bits))
        return value

    def is_nan(self) -> bool:
        return is_nan_bits(self.bits, 32)

    def is_canonical_nan(self) -> bool:
        """Only the quiet bit set in the fraction, either sign."""
        return self.bits & 0x7FFFFFFF == F32_EXP_MASK | F32_QNAN_BIT

    def is_arithmetic_nan(self) -> bool:
        return self.is_nan() and bool(self.bits & F32_QNAN_BIT)

    def __repr__(self) -> str:
        return f"RawF32(0x{self.bits:08x})"


@dataclass(frozen=True)
class RawF64:
    """f64 kept as its exact bit pattern."""

    bits: int

    @classmethod
    def from_bits(cls, bits: int) -> "RawF64":
        return cls(bits & MASK_64)

    def to_bits(self) -> int:
        return self.bits

    def to_float(self) -> float:
        (value,) = struct.unpack("<d", struct.pack("<Q", self.bits))
        return value

    def is_nan(self) -> bool:
        return is_nan_bits(self.bits, 64)

    def is_canonical_nan(self) -> bool:
        """Only the quiet bit set in the fraction, either sign."""
        return self.bits & 0x7FFFFFFFFFFFFFFF == F64_EXP_MASK | F64_QNAN_BIT

    def is_arithmetic_nan(self) -> bool:
        return self.is_nan() and bool(self.bits & F64_QNAN_BIT)

    def __repr__(self) -> str:
        return f"RawF64(0x{self.bits:016x})"


@dataclass(frozen=True)
class I32:
    value: int


@dataclass(frozen=True)
class I64:
    value: int


@dataclass(frozen=True)
class F32:
    value: Any


@dataclass(frozen=True)
class F64:
    value: Any


Value = I32 | I64 | F32 | F64


def to_signed(value: int, width: int) -> int:
    """Reinterpret an unsigned integer of the given width as signed."""
    if value >= 1 << (width - 1):
        value -= 1 << width
    return value


def parse_unsigned(text: Any, width: int, type_name: str) -> int:
    """Parse decimal text as an unsigned integer of ``width`` bits."""
    if not isinstance(text, str) or not _UNSIGNED_DECIMAL.fullmatch(text):
        raise ValueParseError(text, type_name)
    value = int(text)
    if value >= 1 << width:
        raise ValueParseError(text, type_name)
    return value


def decode_value(type_name: Any, text: Any, f32=NativeF32, f64=NativeF64) -> Value:
    """Decode one type-tagged bit-pattern literal into a ``Value``."""
    if type_name == VALTYPE_I32:
        return I32(to_signed(parse_unsigned(text, 32, type_name), 32))
    if type_name == VALTYPE_I64:
        return I64(to_signed(parse_unsigned(text, 64, type_name), 64))
    if type_name == VALTYPE_F32:
        return F32(f32.from_bits(parse_unsigned(text, 32, type_name)))
    if type_name == VALTYPE_F64:
        return F64(f64.from_bits(parse_unsigned(text, 64, type_name)))
    raise UnknownValueType(type_name)


def parse_value(raw: Any, f32=NativeF32, f64=NativeF64) -> Value:
    """Decode a ``{"type": ..., "value": ...}`` object from the compiler."""
    if not isinstance(raw, dict) or "type" not in raw or "value" not in raw:
        raise MalformedIntermediateForm(f"Malformed value object: {raw!r}")
    return decode_value(raw["type"], raw["value"], f32, f64)


def parse_value_list(raws: Any, f32=NativeF32, f64=NativeF64) -> list[Value]:
    """Decode a list of value objects, keeping order.

    The first element that fails to decode fails the whole list.
    """
    if not isinstance(raws, list):
        raise MalformedIntermediateForm(f"Expected a list of values: {raws!r}")
    return [parse_value(raw, f32, f64) for raw in raws]
