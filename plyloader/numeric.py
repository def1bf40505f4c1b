# ============================================================
#                  SCALAR CONVERSION LAYER
# ============================================================
import re
from dataclasses import dataclass
from typing import NamedTuple, Union

import numpy as np

from plyloader.datatypes import ScalarType, is_integer, numpy_dtype, size_of
from plyloader.errors import MalformedBodyError, MalformedValueError


class BinaryCursor(NamedTuple):
    buffer: bytes
    offset: int


_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def decode_ascii(token: str, scalar_type: ScalarType):
    """
    Decode one body token. Only plain decimal literals are accepted: no
    underscores, no nan/inf, and integers must fit the declared type.
    """
    if is_integer(scalar_type):
        if not _INTEGER_RE.fullmatch(token):
            raise MalformedValueError(token, scalar_type.value)
        value = int(token, 10)
        limits = np.iinfo(numpy_dtype(scalar_type))
        if not limits.min <= value <= limits.max:
            raise MalformedValueError(token, scalar_type.value)
        return value

    if not _DECIMAL_RE.fullmatch(token):
        raise MalformedValueError(token, scalar_type.value)
    value = float(token)
    if not abs(value) <= np.finfo(numpy_dtype(scalar_type)).max:
        raise MalformedValueError(token, scalar_type.value)
    return value


def decode_binary(buffer, offset: int, scalar_type: ScalarType, little_endian: bool):
    size = size_of(scalar_type)
    if offset < 0 or offset + size > len(buffer):
        raise MalformedBodyError(
            f"Truncated binary body: need {size} bytes at offset {offset}, buffer holds {len(buffer)}"
        )
    value = np.frombuffer(buffer, dtype=numpy_dtype(scalar_type, little_endian), count=1, offset=offset)[0]
    return value.item()


def normalize(value, scalar_type: ScalarType) -> float:
    """Map an integer channel onto [0, 1) by dividing by 2**bits."""
    return value / float(2 ** (8 * size_of(scalar_type)))


@dataclass(frozen=True)
class Converter:
    """Decodes one raw value, either an ASCII token or a BinaryCursor."""

    scalar_type: ScalarType
    is_ascii: bool
    little_endian: bool = True
    normalize: bool = False

    @property
    def size(self) -> int:
        return size_of(self.scalar_type)

    def __call__(self, raw: Union[str, BinaryCursor]):
        if self.is_ascii:
            value = decode_ascii(raw, self.scalar_type)
        else:
            value = decode_binary(raw.buffer, raw.offset, self.scalar_type, self.little_endian)

        if self.normalize and is_integer(self.scalar_type):
            value = normalize(value, self.scalar_type)
        return value


def make_converter(scalar_type: ScalarType, is_ascii: bool, fmt: str, normalize: bool = False) -> Converter:
    return Converter(
        scalar_type=scalar_type,
        is_ascii=is_ascii,
        little_endian="little" in (fmt or "").lower(),
        normalize=normalize,
    )
