"""Data types for procedural 3D mesh generation."""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

import numpy as np
import trimesh

Point3D = Tuple[float, float, float]
Face = Tuple[int, ...]


@dataclass(frozen=True)
class Mesh3D:
    """Immutable polygon mesh with 0-based face indices.

    Faces may have any arity >= 3. The OBJ serializer converts indices to the
    1-based form of the wire format. ``comments`` carry the prompt label and
    are excluded from equality, so two meshes compare equal when their
    geometry matches.
    """

    vertices: Tuple[Point3D, ...] = ()
    faces: Tuple[Face, ...] = ()
    name: str = "mesh"
    category: str = "generic"
    comments: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    def validate(self) -> List[str]:
        """Return a list of structural problems; empty when the mesh is sound."""
        problems = []
        n = len(self.vertices)
        if n == 0:
            problems.append("mesh has no vertices")
        if not self.faces:
            problems.append("mesh has no faces")

        for i, vertex in enumerate(self.vertices):
            if len(vertex) != 3 or not all(math.isfinite(c) for c in vertex):
                problems.append(f"vertex {i} is not a finite 3D point: {vertex}")

        for i, face in enumerate(self.faces):
            if len(set(face)) < 3:
                problems.append(f"face {i} has fewer than 3 distinct vertices: {face}")
            out_of_range = [idx for idx in face if idx < 0 or idx >= n]
            if out_of_range:
                problems.append(f"face {i} references missing vertices {out_of_range}")
        return problems

    def geometry_equals(self, other: "Mesh3D") -> bool:
        """Compare vertices and faces only."""
        return self.vertices == other.vertices and self.faces == other.faces

    def vertex_array(self) -> np.ndarray:
        return np.array(self.vertices, dtype=float).reshape(-1, 3)

    @property
    def bounds(self) -> Tuple[Point3D, Point3D]:
        """Axis-aligned bounding box as (min, max)."""
        if not self.vertices:
            return ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        arr = self.vertex_array()
        return tuple(arr.min(axis=0)), tuple(arr.max(axis=0))

    def triangles(self) -> List[Tuple[int, int, int]]:
        """Fan-triangulate polygon faces."""
        tris = []
        for face in self.faces:
            for k in range(1, len(face) - 1):
                tris.append((face[0], face[k], face[k + 1]))
        return tris

    def to_trimesh(self) -> trimesh.Trimesh:
        """Convert to trimesh object."""
        if not self.vertices or not self.faces:
            return trimesh.Trimesh()
        mesh = trimesh.Trimesh(
            vertices=self.vertex_array(),
            faces=np.array(self.triangles(), dtype=np.int64),
            process=False,
        )
        mesh.metadata["name"] = self.name
        mesh.metadata["category"] = self.category
        return mesh

    @classmethod
    def from_trimesh(
        cls,
        mesh: trimesh.Trimesh,
        name: str = "mesh",
        category: str = "generic",
    ) -> "Mesh3D":
        """Create Mesh3D from trimesh object."""
        vertices = tuple(
            (float(x), float(y), float(z)) for x, y, z in np.asarray(mesh.vertices)
        )
        faces = tuple(tuple(int(i) for i in face) for face in np.asarray(mesh.faces))
        return cls(vertices=vertices, faces=faces, name=name, category=category)


def clean(value: float) -> float:
    """Round to 6 decimals and fold negative zero."""
    return round(value, 6) + 0.0


class MeshBuilder:
    """Accumulates vertices and faces for a single Mesh3D.

    Every helper returns the absolute indices it created so that composite
    shapes can connect parts without hand-counted offsets.
    """

    def __init__(self):
        self._vertices: List[Point3D] = []
        self._faces: List[Face] = []

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    def add_vertex(self, x: float, y: float, z: float) -> int:
        self._vertices.append((clean(x), clean(y), clean(z)))
        return len(self._vertices) - 1

    def add_ring(self, points: Iterable[Point3D]) -> List[int]:
        return [self.add_vertex(*p) for p in points]

    def add_face(self, *indices: int) -> None:
        if len(indices) < 3:
            raise ValueError(f"A face needs at least 3 vertices, got {len(indices)}")
        self._faces.append(tuple(indices))

    def bridge(self, lower: Sequence[int], upper: Sequence[int], closed: bool = True) -> None:
        """Connect two equally sized rings with quads."""
        if len(lower) != len(upper):
            raise ValueError("Rings must have the same number of vertices")
        count = len(lower) if closed else len(lower) - 1
        for j in range(count):
            k = (j + 1) % len(lower)
            self.add_face(lower[j], lower[k], upper[k], upper[j])

    def add_cap(self, ring: Sequence[int], reverse: bool = False) -> None:
        self.add_face(*(reversed(ring) if reverse else ring))

    def add_prism(self, lower: Sequence[Point3D], upper: Sequence[Point3D]) -> List[int]:
        """Add a closed solid spanned by two matching outlines."""
        bottom = self.add_ring(lower)
        top = self.add_ring(upper)
        self.bridge(bottom, top)
        self.add_cap(bottom, reverse=True)
        self.add_cap(top)
        return bottom + top

    def add_box(self, min_corner: Point3D, max_corner: Point3D) -> List[int]:
        """Add an axis-aligned box as 8 vertices and 6 quads."""
        x0, y0, z0 = min_corner
        x1, y1, z1 = max_corner
        lower = [(x0, y0, z0), (x1, y0, z0), (x1, y0, z1), (x0, y0, z1)]
        upper = [(x0, y1, z0), (x1, y1, z0), (x1, y1, z1), (x0, y1, z1)]
        return self.add_prism(lower, upper)

    def add_quad(self, corners: Sequence[Point3D]) -> List[int]:
        """Add a free-standing single-sided quad (decals such as windows)."""
        indices = self.add_ring(corners)
        self.add_face(*indices)
        return indices

    def build(self, name: str, category: str, comments: Sequence[str] = ()) -> Mesh3D:
        return Mesh3D(
            vertices=tuple(self._vertices),
            faces=tuple(self._faces),
            name=name,
            category=category,
            comments=tuple(comments),
        )
