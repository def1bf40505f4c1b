from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

TRIANGLE_PLY = (
    "ply\n"
    "format ascii 1.0\n"
    "comment made by hand\n"
    "element vertex 3\n"
    "property float x\n"
    "property float y\n"
    "property float z\n"
    "element face 1\n"
    "property list uchar int vertex_indices\n"
    "end_header\n"
    "0 0 0\n"
    "1 0 0\n"
    "0 1 0\n"
    "3 0 1 2\n"
)


def _build_ascii(vertex_props, vertices, faces, vertex_count=None, face_count=None,
                 face_list="property list uchar int vertex_indices", extra_header=()):
    lines = ["ply", "format ascii 1.0"]
    lines.append(f"element vertex {len(vertices) if vertex_count is None else vertex_count}")
    lines.extend(f"property {t} {n}" for t, n in vertex_props)
    lines.append(f"element face {len(faces) if face_count is None else face_count}")
    if face_list:
        lines.append(face_list)
    lines.extend(extra_header)
    lines.append("end_header")
    lines.extend(vertices)
    lines.extend(faces)
    return "\n".join(lines) + "\n"


@pytest.fixture
def triangle_ply() -> str:
    return TRIANGLE_PLY


@pytest.fixture
def make_ply():
    """Factory building ASCII PLY text from property declarations and body lines."""
    return _build_ascii


@pytest.fixture
def binary_triangle():
    """Factory building a binary triangle PLY (xyz float + uchar red) for a byte order."""

    def build(endian="<"):
        fmt = "binary_little_endian" if endian == "<" else "binary_big_endian"
        header = (
            "ply\n"
            f"format {fmt} 1.0\n"
            "element vertex 3\n"
            "property float x\n"
            "property float y\n"
            "property float z\n"
            "property uchar red\n"
            "element face 1\n"
            "property list uchar int vertex_indices\n"
            "end_header\n"
        ).encode("ascii")
        vertices = np.array(
            [(0.0, 0.0, 0.0, 255), (1.0, 0.0, 0.0, 0), (0.0, 1.0, 0.0, 128)],
            dtype=[("x", endian + "f4"), ("y", endian + "f4"), ("z", endian + "f4"), ("red", "u1")],
        ).tobytes()
        faces = np.array([3], dtype="u1").tobytes() + np.array([0, 1, 2], dtype=endian + "i4").tobytes()
        return header + vertices + faces

    return build


@pytest.fixture
def triangle_file(tmp_path, triangle_ply) -> Path:
    path = tmp_path / "triangle.ply"
    path.write_text(triangle_ply)
    return path
