"""Procedural 3D mesh generation for text2mesh.

This module maps free-text prompts to a shape category and builds a
deterministic parametric mesh for it, exportable as OBJ or STL.

Usage:
    from text2mesh.model_gen import ShapeLibrary, classify, serialize_obj

    category = classify("a wooden chair")      # Category.CHAIR
    mesh = ShapeLibrary().build(category, "a wooden chair")
    obj_text = serialize_obj(mesh)
"""

from .classifier import CATEGORY_RULES, Category, CategoryRule, classify, match_rule
from .obj_format import (
    MeshFormatError,
    export_stl,
    mesh_from_payload,
    parse_obj,
    serialize_obj,
)
from .shape_library import SHAPE_BUILDERS, ShapeLibrary, revolve, uv_sphere
from .types import Mesh3D, MeshBuilder

__all__ = [
    # Main API
    "ShapeLibrary",
    "classify",
    "Category",
    "Mesh3D",
    # Classification rules
    "CATEGORY_RULES",
    "CategoryRule",
    "match_rule",
    # Builders
    "SHAPE_BUILDERS",
    "MeshBuilder",
    "revolve",
    "uv_sphere",
    # Wire format
    "serialize_obj",
    "parse_obj",
    "mesh_from_payload",
    "export_stl",
    "MeshFormatError",
]
