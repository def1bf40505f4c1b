# ============================================================
#                       PLY BODY DECODE
# ============================================================
from plyloader.errors import MalformedBodyError, MalformedFaceError, MalformedHeaderError
from plyloader.header import Header
from plyloader.mesh import Mesh
from plyloader.numeric import BinaryCursor


def _require_face_list(header: Header):
    if header.index_count_accessor is None or header.index_accessor is None:
        raise MalformedHeaderError("Face records present but no face list property declared")


# ---------------- ASCII ----------------
def decode_ascii_body(text: str, header: Header) -> Mesh:
    mesh = Mesh()
    lines = text.split("\n")[header.end_header_index + 1:]

    elements = lines[:header.vertex_count]
    faces = [line for line in lines[header.vertex_count:] if line.strip()]

    if len(elements) + len(faces) != header.vertex_count + header.face_count:
        raise MalformedBodyError(
            f"Malformed vertex/index list: header declares {header.vertex_count} vertices and "
            f"{header.face_count} faces, body holds {len(elements)} vertex and {len(faces)} face records"
        )

    lut = header.element_lut
    for record_no, line in enumerate(elements):
        values = line.split()
        if not values:
            continue
        if len(values) < len(lut):
            raise MalformedBodyError(
                f"Vertex record {record_no} has {len(values)} values, expected {len(lut)}"
            )
        for setter, raw in zip(lut, values):
            setter.apply(raw, mesh)

    if faces:
        _require_face_list(header)
    for line in faces:
        values = line.split()
        expected = int(header.index_count_accessor(values[0]))
        if len(values) - 1 != expected:
            raise MalformedFaceError(expected, len(values) - 1)
        mesh.indices.extend(int(header.index_accessor(raw)) for raw in values[1:])

    return mesh


# ---------------- BINARY ----------------
def decode_binary_body(buffer: bytes, header: Header) -> Mesh:
    """Walk vertex then face records with a byte cursor; bytes after the faces are ignored."""
    mesh = Mesh()
    offset = 0

    for _ in range(header.vertex_count):
        for setter in header.element_lut:
            setter.apply(BinaryCursor(buffer, offset), mesh)
            offset += setter.converter.size

    if offset > len(buffer):
        raise MalformedBodyError(
            f"Truncated binary body: vertex records need {offset} bytes, buffer holds {len(buffer)}"
        )

    if header.face_count:
        _require_face_list(header)
    count_accessor, index_accessor = header.index_count_accessor, header.index_accessor
    for _ in range(header.face_count):
        count = int(count_accessor(BinaryCursor(buffer, offset)))
        offset += count_accessor.size
        for _ in range(count):
            mesh.indices.append(int(index_accessor(BinaryCursor(buffer, offset))))
            offset += index_accessor.size

    return mesh
