# ============================================================
#                       PLY DATA TYPES
# ============================================================
import re
from enum import Enum

import numpy as np

from plyloader.errors import UnknownTypeError


class ScalarType(Enum):
    FLOAT = "float"
    DOUBLE = "double"
    CHAR = "char"
    UCHAR = "uchar"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"


# http://paulbourke.net/dataformats/ply/
_SIZES = {
    ScalarType.CHAR: 1, ScalarType.UCHAR: 1,
    ScalarType.SHORT: 2, ScalarType.USHORT: 2,
    ScalarType.INT: 4, ScalarType.UINT: 4,
    ScalarType.FLOAT: 4,
    ScalarType.DOUBLE: 8,
}

_INTEGER_TYPES = frozenset({
    ScalarType.CHAR, ScalarType.UCHAR,
    ScalarType.SHORT, ScalarType.USHORT,
    ScalarType.INT, ScalarType.UINT,
})

_NUMPY_CODES = {
    ScalarType.CHAR: 'i1', ScalarType.UCHAR: 'u1',
    ScalarType.SHORT: 'i2', ScalarType.USHORT: 'u2',
    ScalarType.INT: 'i4', ScalarType.UINT: 'u4',
    ScalarType.FLOAT: 'f4', ScalarType.DOUBLE: 'f8',
}

_DIGITS_RE = re.compile(r"\d")


def size_of(scalar_type: ScalarType) -> int:
    return _SIZES[scalar_type]


def is_integer(scalar_type: ScalarType) -> bool:
    return scalar_type in _INTEGER_TYPES


def numpy_dtype(scalar_type: ScalarType, little_endian: bool = True) -> np.dtype:
    """Explicit-endian numpy dtype for a scalar type, e.g. '<f4'."""
    return np.dtype(('<' if little_endian else '>') + _NUMPY_CODES[scalar_type])


def parse_type_name(token: str) -> ScalarType:
    """
    Resolve a header type token such as 'float', 'uchar' or 'float32'.
    Bit-width suffixes are stripped before matching, so 'uint8' reads as 'uint'.
    """
    name = _DIGITS_RE.sub("", token).lower()
    try:
        return ScalarType(name)
    except ValueError:
        raise UnknownTypeError(token) from None
