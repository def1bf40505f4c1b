# ============================================================
#                       MESH RECORD
# ============================================================
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

import numpy as np
import pandas as pd

from plyloader.errors import EmptyMeshError


@dataclass
class Mesh:
    """Flat attribute sequences decoded from a PLY body."""

    positions: List[float] = field(default_factory=list)
    normals: List[float] = field(default_factory=list)
    texcoords: List[float] = field(default_factory=list)
    colors: List[float] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    def vertex_frame(self) -> pd.DataFrame:
        """One row per vertex, with a column per decoded channel."""
        n = self.vertex_count
        columns = {}
        for names, values in (
            (("x", "y", "z"), self.positions),
            (("nx", "ny", "nz"), self.normals),
            (("s", "t"), self.texcoords),
            (("red", "green", "blue"), self.colors),
        ):
            if n == 0 or len(values) != n * len(names):
                continue
            arr = np.asarray(values, dtype=float).reshape(n, len(names))
            for i, name in enumerate(names):
                columns[name] = arr[:, i]
        return pd.DataFrame(columns)


class MeshBuffers(NamedTuple):
    position: np.ndarray
    normal: Optional[np.ndarray]
    uv: Optional[np.ndarray]
    color: Optional[np.ndarray]
    index: np.ndarray


def _attribute(values, stride):
    if not values:
        return None
    return np.asarray(values, dtype=np.float32).reshape(-1, stride)


def process(mesh: Mesh) -> MeshBuffers:
    """
    Hand a decoded mesh over as strided float32 attributes plus a uint32 index buffer.
    Missing normals are returned as None; computing them is left to the assembler.
    """
    if len(mesh.positions) * len(mesh.indices) == 0:
        raise EmptyMeshError("Cannot load an empty .ply mesh.")

    return MeshBuffers(
        position=_attribute(mesh.positions, 3),
        normal=_attribute(mesh.normals, 3),
        uv=_attribute(mesh.texcoords, 2),
        color=_attribute(mesh.colors, 3),
        index=np.asarray(mesh.indices, dtype=np.uint32),
    )
