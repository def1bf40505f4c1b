# ============================================================
#                       PLY HEADER PARSE
# ============================================================
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from plyloader.datatypes import parse_type_name
from plyloader.errors import MalformedHeaderError
from plyloader.numeric import Converter, make_converter

logger = logging.getLogger(__name__)

END_HEADER = "end_header"


class Attribute(Enum):
    POSITION = "positions"
    NORMAL = "normals"
    TEXCOORD = "texcoords"
    COLOR = "colors"


# vertex property name -> (attribute, normalize integers)
VERTEX_ATTRIBUTES = {
    "x": (Attribute.POSITION, False), "y": (Attribute.POSITION, False), "z": (Attribute.POSITION, False),
    "nx": (Attribute.NORMAL, False), "ny": (Attribute.NORMAL, False), "nz": (Attribute.NORMAL, False),
    "s": (Attribute.TEXCOORD, False), "t": (Attribute.TEXCOORD, False),
    "red": (Attribute.COLOR, True), "green": (Attribute.COLOR, True), "blue": (Attribute.COLOR, True),
}


@dataclass(frozen=True)
class PropertySetter:
    """
    One slot of a vertex record.

    ``attribute`` selects the mesh sequence the decoded value is appended to.
    Unrecognised property names get ``attribute=None``: the slot still counts
    for token alignment and binary width, but nothing is decoded or stored.
    """

    name: str
    attribute: Optional[Attribute]
    converter: Converter

    def apply(self, raw, mesh):
        if self.attribute is None:
            return
        getattr(mesh, self.attribute.value).append(self.converter(raw))


class _State(Enum):
    PREAMBLE = "preamble"
    VERTEX = "vertex"
    FACE = "face"
    OTHER = "other"


@dataclass(frozen=True)
class Header:
    is_ascii: bool = False
    format: str = ""
    is_little_endian: bool = False
    version: str = ""
    comments: Tuple[str, ...] = ()
    obj_info: Tuple[str, ...] = ()
    vertex_count: int = 0
    face_count: int = 0
    element_lut: Tuple[PropertySetter, ...] = ()
    index_count_accessor: Optional[Converter] = None
    index_accessor: Optional[Converter] = None
    end_header_index: int = 0

    def summary(self):
        """JSON-friendly view used by the CLI and the HTTP service."""
        return {
            "format": self.format,
            "version": self.version,
            "comments": list(self.comments),
            "vertexCount": self.vertex_count,
            "faceCount": self.face_count,
            "vertexProperties": [
                {
                    "name": s.name,
                    "type": s.converter.scalar_type.value,
                    "attribute": s.attribute.value if s.attribute else None,
                }
                for s in self.element_lut
            ],
        }


def find_end_header(lines) -> int:
    for i, line in enumerate(lines):
        if line.strip() == END_HEADER:
            return i
    raise MalformedHeaderError("Malformed ply header! No end_header line found.")


def _parse_count(tokens, line_no):
    try:
        count = int(tokens[2])
    except (IndexError, ValueError):
        raise MalformedHeaderError(f"Wrong element declaration format on header line {line_no}: {' '.join(tokens)}") from None
    if count < 0:
        raise MalformedHeaderError(f"Negative element count on header line {line_no}: {count}")
    return count


@dataclass
class _HeaderBuilder:
    fmt: str = ""
    version: str = ""
    comments: list = field(default_factory=list)
    obj_info: list = field(default_factory=list)
    vertex_count: int = 0
    face_count: int = 0
    # property tokens, resolved into converters once the format is known
    vertex_properties: list = field(default_factory=list)
    face_list: Optional[list] = None


def parse_header(text: str) -> Header:
    """
    Parse the header section of a PLY payload.

    Element lines drive a small state machine; every property line belongs to
    the element most recently opened. Properties are collected first and turned
    into converters afterwards, since the format line may legally follow them.
    """
    lines = text.split("\n")
    end_index = find_end_header(lines)

    b = _HeaderBuilder()
    state = _State.PREAMBLE

    for line_no, line in enumerate(lines[:end_index]):
        tokens = line.strip().split()
        if not tokens:
            continue
        keyword = tokens[0]

        if keyword == "format":
            if len(tokens) > 1:
                b.fmt = tokens[1]
            if len(tokens) > 2:
                b.version = tokens[2]

        elif keyword == "comment":
            b.comments.append(" ".join(tokens[1:]))

        elif keyword == "obj_info":
            b.obj_info.append(" ".join(tokens[1:]))

        elif keyword == "element":
            name = tokens[1] if len(tokens) > 1 else ""
            count = _parse_count(tokens, line_no)
            if name == "vertex":
                b.vertex_count = count
                state = _State.VERTEX
            elif name == "face":
                b.face_count = count
                state = _State.FACE
            else:
                logger.debug(f"Ignoring element '{name}' ({count} records)")
                state = _State.OTHER

        elif keyword == "property":
            if state is _State.VERTEX:
                if len(tokens) < 3:
                    raise MalformedHeaderError(f"Wrong property declaration on header line {line_no}: {line.strip()}")
                if tokens[1] == "list":
                    raise MalformedHeaderError(
                        f"List property '{tokens[-1]}' is not supported on the vertex element"
                    )
                b.vertex_properties.append(tokens)
            elif state is _State.FACE and len(tokens) > 1 and tokens[1] == "list":
                if len(tokens) < 5:
                    raise MalformedHeaderError(f"Wrong list property declaration on header line {line_no}: {line.strip()}")
                b.face_list = tokens

    is_ascii = b.fmt.lower() == "ascii"

    lut = []
    for tokens in b.vertex_properties:
        scalar_type = parse_type_name(tokens[1])
        name = tokens[2]
        attribute, normalize = VERTEX_ATTRIBUTES.get(name, (None, False))
        if attribute is None:
            logger.debug(f"Skipping unrecognised vertex property '{name}'")
        lut.append(PropertySetter(name, attribute, make_converter(scalar_type, is_ascii, b.fmt, normalize)))

    count_accessor = index_accessor = None
    if b.face_list is not None:
        tokens = b.face_list
        count_accessor = make_converter(parse_type_name(tokens[2]), is_ascii, b.fmt)
        index_accessor = make_converter(parse_type_name(tokens[3]), is_ascii, b.fmt)

    return Header(
        is_ascii=is_ascii,
        format=b.fmt,
        is_little_endian="little" in b.fmt.lower(),
        version=b.version,
        comments=tuple(b.comments),
        obj_info=tuple(b.obj_info),
        vertex_count=b.vertex_count,
        face_count=b.face_count,
        element_lut=tuple(lut),
        index_count_accessor=count_accessor,
        index_accessor=index_accessor,
        end_header_index=end_index,
    )
