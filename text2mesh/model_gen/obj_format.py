"""Wavefront OBJ serialization for Mesh3D.

Only the subset the pipeline needs is supported: ``v`` and ``f`` records,
``#`` comments, and polygon faces of any arity. Other directives are
ignored when parsing.
"""

import io
import logging
import math
from typing import List

import trimesh

from .types import Mesh3D

logger = logging.getLogger(__name__)

GLB_MAGIC = b"glTF"

IGNORED_DIRECTIVES = frozenset(
    ["vn", "vt", "vp", "o", "g", "s", "usemtl", "mtllib", "l"]
)


class MeshFormatError(ValueError):
    """Raised when mesh text or bytes cannot be decoded into a valid mesh."""


def _format_float(value: float) -> str:
    return f"{value + 0.0:.4f}"


def serialize_obj(mesh: Mesh3D) -> str:
    """Render a mesh as OBJ text with 1-based face indices."""
    lines = []
    for comment in mesh.comments:
        flat = " ".join(comment.splitlines())
        lines.append(f"# {flat}")
    if mesh.comments:
        lines.append("")

    for x, y, z in mesh.vertices:
        lines.append(f"v {_format_float(x)} {_format_float(y)} {_format_float(z)}")
    for face in mesh.faces:
        lines.append("f " + " ".join(str(i + 1) for i in face))
    return "\n".join(lines) + "\n"


def _resolve_index(token: str, vertex_count: int, line_no: int) -> int:
    raw = token.split("/")[0]
    try:
        index = int(raw)
    except ValueError:
        raise MeshFormatError(f"Line {line_no}: invalid face index {token!r}")

    if index > 0:
        resolved = index - 1
    elif index < 0:
        resolved = vertex_count + index
    else:
        raise MeshFormatError(f"Line {line_no}: face index 0 is not allowed")

    if resolved < 0 or resolved >= vertex_count:
        raise MeshFormatError(
            f"Line {line_no}: face index {index} out of range for {vertex_count} vertices"
        )
    return resolved


def parse_obj(text: str, name: str = "mesh", category: str = "generic") -> Mesh3D:
    """Parse OBJ text into a Mesh3D.

    Args:
        text: OBJ document.
        name: Name for the resulting mesh when the document has no ``o`` record.
        category: Category label for the resulting mesh.

    Returns:
        Mesh3D with 0-based face indices and the document's comments.

    Raises:
        MeshFormatError: On malformed records or when no geometry is present.
    """
    vertices = []
    faces = []
    comments: List[str] = []

    for line_no, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            comments.append(stripped[1:].strip())
            continue

        parts = stripped.split()
        keyword = parts[0]

        if keyword == "v":
            if len(parts) < 4:
                raise MeshFormatError(f"Line {line_no}: vertex needs 3 coordinates")
            try:
                x, y, z = (float(p) for p in parts[1:4])
            except ValueError:
                raise MeshFormatError(f"Line {line_no}: invalid vertex {stripped!r}")
            if not all(math.isfinite(c) for c in (x, y, z)):
                raise MeshFormatError(f"Line {line_no}: non-finite vertex {stripped!r}")
            vertices.append((x, y, z))
        elif keyword == "f":
            indices = tuple(_resolve_index(t, len(vertices), line_no) for t in parts[1:])
            if len(set(indices)) < 3:
                raise MeshFormatError(
                    f"Line {line_no}: face needs at least 3 distinct vertices"
                )
            faces.append(indices)
        elif keyword == "o" and len(parts) > 1:
            name = parts[1]
        elif keyword not in IGNORED_DIRECTIVES:
            logger.debug(f"Ignoring unsupported OBJ record on line {line_no}: {keyword}")

    if not vertices or not faces:
        raise MeshFormatError("OBJ document contains no geometry")

    return Mesh3D(
        vertices=tuple(vertices),
        faces=tuple(faces),
        name=name,
        category=category,
        comments=tuple(comments),
    )


def mesh_from_payload(data: bytes, name: str = "remote", category: str = "remote") -> Mesh3D:
    """Decode a remote image-to-3D response (binary glTF or OBJ text)."""
    if not data:
        raise MeshFormatError("Empty mesh payload")

    if data[:4] == GLB_MAGIC:
        try:
            loaded = trimesh.load(io.BytesIO(data), file_type="glb", force="mesh")
        except Exception as e:
            raise MeshFormatError(f"Unreadable glTF payload: {e}") from e
        if len(loaded.vertices) == 0 or len(loaded.faces) == 0:
            raise MeshFormatError("glTF payload contains no geometry")
        return Mesh3D.from_trimesh(loaded, name=name, category=category)

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MeshFormatError(f"Mesh payload is neither glTF nor UTF-8 OBJ: {e}") from e
    return parse_obj(text, name=name, category=category)


def export_stl(mesh: Mesh3D) -> bytes:
    """Export a mesh as binary STL via trimesh."""
    return mesh.to_trimesh().export(file_type="stl")
