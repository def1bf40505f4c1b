# ============================================================
#                       PLY PARSE ENTRY POINT
# ============================================================
import re
from typing import Tuple, Union

from plyloader.body import decode_ascii_body, decode_binary_body
from plyloader.errors import MagicMismatchError, MalformedHeaderError, NotSupportedError
from plyloader.header import Header, parse_header
from plyloader.mesh import Mesh

MAGIC = "ply"
BINARY_FORMATS = ("binary_little_endian", "binary_big_endian")

_END_HEADER_RE = re.compile(rb"^[ \t]*end_header[ \t\r]*(?:\n|\Z)", re.MULTILINE)


def is_magic(data: Union[str, bytes]) -> bool:
    if isinstance(data, str):
        return data.startswith(MAGIC)
    return bytes(data[:len(MAGIC)]) == MAGIC.encode()


def split_header(data: bytes):
    """Return (header text including the end_header line, body bytes)."""
    match = _END_HEADER_RE.search(data)
    if match is None:
        raise MalformedHeaderError("Malformed ply header! No end_header line found.")
    return data[:match.end()].decode("latin-1"), data[match.end():]


def parse(data: Union[str, bytes, bytearray, memoryview]) -> Mesh:
    """Decode a complete PLY payload into a Mesh."""
    return parse_document(data)[1]


def parse_document(data: Union[str, bytes, bytearray, memoryview]) -> Tuple[Header, Mesh]:
    """
    Decode a complete PLY payload, returning the parsed header alongside the mesh.

    Text input must be ASCII PLY. Binary PLY has to be handed over as bytes,
    since its records cannot survive a text decode.
    """
    if not isinstance(data, str):
        data = bytes(data)

    if not is_magic(data):
        raise MagicMismatchError("Cannot parse a .ply model from a non-ply file format!")

    if isinstance(data, str):
        header = parse_header(data)
        if not header.is_ascii:
            raise NotSupportedError(
                f"Binary PLY ({header.format or 'no format'}) must be supplied as bytes, not text."
            )
        return header, decode_ascii_body(data, header)

    header_text, body = split_header(data)
    header = parse_header(header_text)
    return header, _decode_bytes(data, header, body)


def _decode_bytes(data: bytes, header: Header, body: bytes) -> Mesh:
    if header.is_ascii:
        return decode_ascii_body(data.decode("latin-1"), header)
    if header.format.lower() in BINARY_FORMATS:
        return decode_binary_body(body, header)
    raise NotSupportedError(f"Unsupported PLY format: {header.format or '<missing>'}")
