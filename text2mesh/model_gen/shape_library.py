"""Parametric shape library used as the deterministic mesh fallback."""

import dataclasses
import logging
import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .classifier import Category, classify
from .types import Mesh3D, MeshBuilder, Point3D

logger = logging.getLogger(__name__)

GENERATOR_TAG = "Generated by text2mesh procedural shape library"

# Vase silhouette as (height, radius) pairs, bottom to neck
VASE_PROFILE: Tuple[Tuple[float, float], ...] = (
    (0.0, 0.3),
    (0.2, 0.4),
    (0.4, 0.35),
    (0.6, 0.4),
    (0.8, 0.3),
    (1.0, 0.25),
)
VASE_SEGMENTS = 12

SPHERE_RADIUS = 0.5
SPHERE_STACKS = 8
SPHERE_SLICES = 12

WHEEL_SEGMENTS = 12

CUBE_VERTICES: Tuple[Point3D, ...] = (
    (-0.5, -0.5, -0.5),
    (0.5, -0.5, -0.5),
    (0.5, 0.5, -0.5),
    (-0.5, 0.5, -0.5),
    (-0.5, -0.5, 0.5),
    (0.5, -0.5, 0.5),
    (0.5, 0.5, 0.5),
    (-0.5, 0.5, 0.5),
)
CUBE_FACES: Tuple[Tuple[int, ...], ...] = (
    (0, 1, 2, 3),
    (7, 6, 5, 4),
    (0, 4, 5, 1),
    (1, 5, 6, 2),
    (2, 6, 7, 3),
    (3, 7, 4, 0),
)

PYRAMID_VERTICES: Tuple[Point3D, ...] = (
    (-1.0, 0.0, -1.0),
    (1.0, 0.0, -1.0),
    (1.0, 0.0, 1.0),
    (-1.0, 0.0, 1.0),
    (0.0, 1.5, 0.0),
)
PYRAMID_FACES: Tuple[Tuple[int, ...], ...] = (
    (3, 2, 1, 0),
    (0, 1, 4),
    (1, 2, 4),
    (2, 3, 4),
    (3, 0, 4),
)


def _comments(title: str, prompt: str) -> List[str]:
    label = " ".join(prompt.split())
    return [f"{title} generated for: {label}", GENERATOR_TAG]


def _fixed_mesh(
    vertices: Sequence[Point3D],
    faces: Sequence[Tuple[int, ...]],
    name: str,
    title: str,
    prompt: str,
) -> Mesh3D:
    builder = MeshBuilder()
    builder.add_ring(vertices)
    for face in faces:
        builder.add_face(*face)
    return builder.build(name, name, _comments(title, prompt))


def revolve(
    profile: Sequence[Tuple[float, float]],
    segments: int,
    builder: Optional[MeshBuilder] = None,
) -> MeshBuilder:
    """Rotate a (height, radius) profile around the vertical axis.

    Produces ``len(profile) * segments`` vertices and
    ``(len(profile) - 1) * segments`` quads. Top and bottom rings stay open.
    """
    if len(profile) < 2:
        raise ValueError("A revolution profile needs at least two points")
    if segments < 3:
        raise ValueError("A revolution needs at least three segments")

    builder = builder or MeshBuilder()
    rings = []
    for height, radius in profile:
        ring = []
        for j in range(segments):
            angle = 2 * math.pi * j / segments
            ring.append((radius * math.cos(angle), height, radius * math.sin(angle)))
        rings.append(builder.add_ring(ring))

    for lower, upper in zip(rings, rings[1:]):
        builder.bridge(lower, upper)
    return builder


def uv_sphere(
    radius: float = SPHERE_RADIUS,
    stacks: int = SPHERE_STACKS,
    slices: int = SPHERE_SLICES,
    builder: Optional[MeshBuilder] = None,
) -> MeshBuilder:
    """Latitude/longitude sphere.

    Emits ``(stacks + 1) * (slices + 1)`` vertices, duplicating the seam and
    keeping a full ring at each pole, and ``stacks * slices`` quads. Pole
    quads are geometrically degenerate but reference distinct vertices.
    """
    builder = builder or MeshBuilder()
    base = builder.vertex_count
    for i in range(stacks + 1):
        phi = math.pi * i / stacks
        for j in range(slices + 1):
            theta = 2 * math.pi * j / slices
            builder.add_vertex(
                radius * math.sin(phi) * math.cos(theta),
                radius * math.cos(phi),
                radius * math.sin(phi) * math.sin(theta),
            )

    for i in range(stacks):
        for j in range(slices):
            first = base + i * (slices + 1) + j
            second = first + slices + 1
            builder.add_face(first, first + 1, second + 1, second)
    return builder


def build_cube(prompt: str = "") -> Mesh3D:
    return _fixed_mesh(CUBE_VERTICES, CUBE_FACES, "cube", "Cube", prompt)


def build_pyramid(prompt: str = "") -> Mesh3D:
    return _fixed_mesh(PYRAMID_VERTICES, PYRAMID_FACES, "pyramid", "Pyramid", prompt)


def build_sphere(prompt: str = "") -> Mesh3D:
    return uv_sphere().build("sphere", "sphere", _comments("Sphere", prompt))


def build_vase(prompt: str = "") -> Mesh3D:
    return revolve(VASE_PROFILE, VASE_SEGMENTS).build("vase", "vase", _comments("Vase", prompt))


def _seat_outline() -> List[Tuple[float, float, float]]:
    """Seat perimeter as (x, z, crown), front edge first, counter-clockwise."""
    steps = [-0.45, -0.30, -0.15, 0.0, 0.15, 0.30, 0.45]
    crown = {0.45: 0.0, 0.3: 0.02, 0.15: 0.03, 0.0: 0.03}

    def rise(x):
        return crown[round(abs(x), 2)]

    outline = [(x, -0.45, rise(x)) for x in steps]
    outline += [(0.45, z, 0.0) for z in steps[1:]]
    outline += [(x, 0.45, rise(x)) for x in reversed(steps[:-1])]
    outline += [(-0.45, z, 0.0) for z in reversed(steps[1:-1])]
    return outline


# Backrest silhouette in the x/y plane, curved top edge
BACKREST_OUTLINE: Tuple[Tuple[float, float], ...] = (
    (-0.40, 1.20),
    (-0.20, 1.25),
    (0.00, 1.26),
    (0.20, 1.25),
    (0.40, 1.20),
    (0.40, 1.00),
    (0.40, 0.80),
    (0.40, 0.60),
    (0.40, 0.50),
    (-0.40, 0.50),
    (-0.40, 0.60),
    (-0.40, 0.80),
    (-0.40, 1.00),
)


def build_chair(prompt: str = "") -> Mesh3D:
    builder = MeshBuilder()

    # Seat with a slightly crowned top
    outline = _seat_outline()
    builder.add_prism(
        [(x, 0.42 + c, z) for x, z, c in outline],
        [(x, 0.50 + c, z) for x, z, c in outline],
    )

    # Backrest slab along the rear edge
    builder.add_prism(
        [(x, y, -0.45) for x, y in BACKREST_OUTLINE],
        [(x, y, -0.39) for x, y in BACKREST_OUTLINE],
    )

    for x0, z0 in ((-0.35, -0.35), (0.25, -0.35), (-0.35, 0.25), (0.25, 0.25)):
        builder.add_box((x0, 0.0, z0), (x0 + 0.10, 0.42, z0 + 0.10))

    return builder.build("chair", "chair", _comments("Chair", prompt))


def build_table(prompt: str = "") -> Mesh3D:
    builder = MeshBuilder()
    builder.add_box((-1.0, 0.7, -0.6), (1.0, 0.8, 0.6))
    for x0 in (-0.8, 0.7):
        for z0 in (-0.45, 0.35):
            builder.add_box((x0, 0.0, z0), (x0 + 0.1, 0.7, z0 + 0.1))
    return builder.build("table", "table", _comments("Table", prompt))


def build_house(prompt: str = "") -> Mesh3D:
    builder = MeshBuilder()
    builder.add_box((-1.0, 0.0, -1.0), (1.0, 1.0, 1.0))

    # Hip roof with overhang
    eaves = builder.add_ring(
        [(-1.2, 1.0, -1.2), (1.2, 1.0, -1.2), (1.2, 1.0, 1.2), (-1.2, 1.0, 1.2)]
    )
    apex = builder.add_vertex(0.0, 1.8, 0.0)
    for j in range(4):
        builder.add_face(eaves[j], eaves[(j + 1) % 4], apex)
    builder.add_cap(eaves, reverse=True)

    builder.add_box((0.45, 1.15, -0.55), (0.65, 1.75, -0.35))

    # Door and windows on the front wall
    builder.add_quad([(-0.2, 0.0, 1.01), (0.2, 0.0, 1.01), (0.2, 0.8, 1.01), (-0.2, 0.8, 1.01)])
    for x0 in (-0.6, 0.4):
        builder.add_quad(
            [(x0, 0.3, 1.01), (x0 + 0.2, 0.3, 1.01), (x0 + 0.2, 0.6, 1.01), (x0, 0.6, 1.01)]
        )
    return builder.build("house", "house", _comments("House", prompt))


def build_robot(prompt: str = "") -> Mesh3D:
    builder = MeshBuilder()
    builder.add_box((-0.3, 0.5, -0.2), (0.3, 1.2, 0.2))  # torso
    builder.add_box((-0.2, 1.25, -0.2), (0.2, 1.6, 0.2))  # head
    builder.add_box((-0.05, 1.2, -0.05), (0.05, 1.25, 0.05))  # neck
    builder.add_box((-0.02, 1.6, -0.02), (0.02, 1.75, 0.02))  # antenna

    for x0 in (-0.45, 0.3):
        builder.add_box((x0, 0.55, -0.08), (x0 + 0.15, 1.1, 0.08))
    for x0 in (-0.25, 0.05):
        builder.add_box((x0, 0.0, -0.1), (x0 + 0.2, 0.5, 0.1))

    for x0 in (-0.12, 0.04):
        builder.add_quad(
            [(x0, 1.45, -0.21), (x0 + 0.08, 1.45, -0.21), (x0 + 0.08, 1.5, -0.21), (x0, 1.5, -0.21)]
        )
    return builder.build("robot", "robot", _comments("Robot", prompt))


# Car side silhouette in the x/y plane: flat underside, arched roofline
CAR_BODY_OUTLINE: Tuple[Tuple[float, float], ...] = (
    (-1.2, 0.12),
    (1.2, 0.12),
    (1.2, 0.30),
    (1.0, 0.32),
    (0.8, 0.35),
    (0.6, 0.38),
    (0.4, 0.40),
    (0.2, 0.42),
    (0.0, 0.43),
    (-0.2, 0.42),
    (-0.4, 0.40),
    (-0.6, 0.38),
    (-0.8, 0.35),
    (-1.0, 0.32),
    (-1.2, 0.30),
)

CAR_CABIN_OUTLINE: Tuple[Tuple[float, float], ...] = (
    (-0.7, 0.38),
    (0.6, 0.38),
    (0.35, 0.75),
    (-0.5, 0.75),
)


def _wheel_ring(cx: float, cy: float, z: float, radius: float) -> List[Point3D]:
    return [
        (
            cx + radius * math.cos(2 * math.pi * j / WHEEL_SEGMENTS),
            cy + radius * math.sin(2 * math.pi * j / WHEEL_SEGMENTS),
            z,
        )
        for j in range(WHEEL_SEGMENTS)
    ]


def build_car(prompt: str = "") -> Mesh3D:
    builder = MeshBuilder()
    builder.add_prism(
        [(x, y, -0.55) for x, y in CAR_BODY_OUTLINE],
        [(x, y, 0.55) for x, y in CAR_BODY_OUTLINE],
    )
    builder.add_prism(
        [(x, y, -0.45) for x, y in CAR_CABIN_OUTLINE],
        [(x, y, 0.45) for x, y in CAR_CABIN_OUTLINE],
    )

    for cx in (-0.75, 0.75):
        for z0, z1 in ((-0.65, -0.5), (0.5, 0.65)):
            builder.add_prism(
                _wheel_ring(cx, 0.18, z0, 0.18),
                _wheel_ring(cx, 0.18, z1, 0.18),
            )

    # Headlights at the front, tail lights at the back
    for x in (1.21, -1.21):
        for z0 in (-0.45, 0.3):
            builder.add_quad(
                [(x, 0.2, z0), (x, 0.2, z0 + 0.15), (x, 0.27, z0 + 0.15), (x, 0.27, z0)]
            )

    # Side windows
    for z in (-0.46, 0.46):
        builder.add_quad([(-0.5, 0.45, z), (0.4, 0.45, z), (0.25, 0.7, z), (-0.4, 0.7, z)])

    return builder.build("car", "car", _comments("Car", prompt))


SHAPE_BUILDERS: Dict[Category, Callable[[str], Mesh3D]] = {
    Category.CAR: build_car,
    Category.ROBOT: build_robot,
    Category.CHAIR: build_chair,
    Category.TABLE: build_table,
    Category.VASE: build_vase,
    Category.HOUSE: build_house,
    # TODO: creatures reuse the sphere until dedicated figure geometry exists
    Category.CREATURE: build_sphere,
    Category.CUBE: build_cube,
    Category.SPHERE: build_sphere,
    Category.PYRAMID: build_pyramid,
    Category.DEFAULT: build_cube,
}


class ShapeLibrary:
    """Deterministic parametric meshes keyed by prompt category.

    Builders are pure: the same category always yields the same geometry, and
    the prompt only ends up in the mesh comments.

    Usage:
        library = ShapeLibrary()
        mesh = library.build_for_prompt("a red sports car")
        mesh.category  # 'car'
    """

    def list_categories(self) -> List[str]:
        """List all categories with a builder."""
        return sorted(category.value for category in SHAPE_BUILDERS)

    def builder_for(self, category: Category) -> Callable[[str], Mesh3D]:
        return SHAPE_BUILDERS.get(Category(category), build_cube)

    def build(self, category: Category, prompt: str = "") -> Mesh3D:
        """Build the mesh for a category, tagged with that category."""
        category = Category(category)
        mesh = self.builder_for(category)(prompt)
        logger.debug(
            f"Built {mesh.name} for category {category.value}: "
            f"{mesh.vertex_count} vertices, {mesh.face_count} faces"
        )
        return dataclasses.replace(mesh, category=category.value)

    def build_for_prompt(self, prompt: str) -> Mesh3D:
        """Classify the prompt and build the matching mesh."""
        return self.build(classify(prompt), prompt)
