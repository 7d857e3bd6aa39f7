"""
Pytest configuration and fixtures for auto_orient.

Provides:
- Mesh builders (box, cube, pillar, stacked "mushroom")
- STL file fixtures written with numpy-stl
- Assertion helpers
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import pytest
from stl import mesh as stl_mesh

from auto_orient.logging_config import PACKAGE_LOGGER
from auto_orient.orientation.orienter import OrientMesh

# Outward-wound triangles of a box over the corner order
# 0(-,-,-) 1(+,-,-) 2(+,+,-) 3(-,+,-) 4(-,-,+) 5(+,-,+) 6(+,+,+) 7(-,+,+)
BOX_FACES = np.array([
    [0, 2, 1], [0, 3, 2],  # bottom (-z)
    [4, 5, 6], [4, 6, 7],  # top (+z)
    [0, 1, 5], [0, 5, 4],  # front (-y)
    [3, 7, 6], [3, 6, 2],  # back (+y)
    [0, 4, 7], [0, 7, 3],  # left (-x)
    [1, 2, 6], [1, 6, 5],  # right (+x)
], dtype=np.int32)


# ============================================================================
# Logging Isolation
# ============================================================================

@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo setup_logging() so caplog sees records from every test."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.filters.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Mesh Builders
# ============================================================================

def make_box(lo=(0.0, 0.0, 0.0), hi=(1.0, 1.0, 1.0)) -> Tuple[np.ndarray, np.ndarray]:
    """Closed axis-aligned box as (vertices, faces)."""
    (x0, y0, z0), (x1, y1, z1) = lo, hi
    vertices = np.array([
        [x0, y0, z0], [x1, y0, z0], [x1, y1, z0], [x0, y1, z0],
        [x0, y0, z1], [x1, y0, z1], [x1, y1, z1], [x0, y1, z1],
    ], dtype=np.float64)
    return vertices, BOX_FACES.copy()


def merge_meshes(*meshes: Tuple[np.ndarray, np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
    """Concatenate indexed meshes into one."""
    vertices, faces, offset = [], [], 0
    for v, f in meshes:
        vertices.append(v)
        faces.append(f + offset)
        offset += len(v)
    return np.vstack(vertices), np.vstack(faces).astype(np.int32)


def make_mushroom() -> Tuple[np.ndarray, np.ndarray]:
    """1x1x1 stem under a 3x3x0.5 cap; cap faces start at index 12."""
    return merge_meshes(
        make_box((0.0, 0.0, 0.0), (1.0, 1.0, 1.0)),
        make_box((-1.0, -1.0, 1.0), (2.0, 2.0, 1.5)),
    )


def write_stl(path: Path, vertices: np.ndarray, faces: np.ndarray) -> Path:
    """Write an indexed mesh as binary STL."""
    m = stl_mesh.Mesh(np.zeros(len(faces), dtype=stl_mesh.Mesh.dtype))
    m.vectors[:] = vertices[faces]
    m.save(str(path))
    return path


def write_ascii_stl(path: Path, vertices: np.ndarray, faces: np.ndarray, name: str = "part") -> Path:
    """Write an indexed mesh as ASCII STL."""
    with open(path, 'w') as f:
        f.write(f"solid {name}\n")
        for tri in vertices[faces]:
            normal = np.cross(tri[1] - tri[0], tri[2] - tri[0])
            normal = normal / (np.linalg.norm(normal) or 1.0)
            f.write(f"  facet normal {normal[0]} {normal[1]} {normal[2]}\n")
            f.write("    outer loop\n")
            for v in tri:
                f.write(f"      vertex {v[0]} {v[1]} {v[2]}\n")
            f.write("    endloop\n")
            f.write("  endfacet\n")
        f.write(f"endsolid {name}\n")
    return path


# ============================================================================
# Mesh Fixtures
# ============================================================================

@pytest.fixture
def cube_mesh() -> OrientMesh:
    """10 mm cube centered on the origin."""
    vertices, faces = make_box((-5.0, -5.0, -5.0), (5.0, 5.0, 5.0))
    return OrientMesh("cube", vertices, faces)


@pytest.fixture
def pillar_mesh() -> OrientMesh:
    """1x1 pillar, 10 high, standing on its small face."""
    vertices, faces = make_box((0.0, 0.0, 0.0), (1.0, 1.0, 10.0))
    return OrientMesh("pillar", vertices, faces)


@pytest.fixture
def mushroom_mesh() -> OrientMesh:
    vertices, faces = make_mushroom()
    return OrientMesh("mushroom", vertices, faces)


@pytest.fixture
def empty_mesh() -> OrientMesh:
    return OrientMesh("empty", np.zeros((0, 3)), np.zeros((0, 3), dtype=np.int32))


# ============================================================================
# STL File Fixtures
# ============================================================================

@pytest.fixture
def cube_stl_path(tmp_path: Path) -> Path:
    """Binary STL of a 10 mm cube."""
    return write_stl(tmp_path / "cube.stl", *make_box((0, 0, 0), (10, 10, 10)))


@pytest.fixture
def pillar_stl_path(tmp_path: Path) -> Path:
    """Binary STL of a 2x2x20 pillar."""
    return write_stl(tmp_path / "pillar.stl", *make_box((0, 0, 0), (2, 2, 20)))


@pytest.fixture
def ascii_stl_path(tmp_path: Path) -> Path:
    """ASCII STL of a 10 mm cube."""
    return write_ascii_stl(tmp_path / "ascii_cube.stl", *make_box((0, 0, 0), (10, 10, 10)), name="cube")


@pytest.fixture
def empty_stl_path(tmp_path: Path) -> Path:
    """Binary STL with zero triangles."""
    path = tmp_path / "empty.stl"
    stl_mesh.Mesh(np.zeros(0, dtype=stl_mesh.Mesh.dtype)).save(str(path))
    return path


# ============================================================================
# Assertion Helpers
# ============================================================================

def assert_valid_faces(faces: np.ndarray, n_vertices: int) -> None:
    """Assert that faces array is a valid index buffer."""
    assert isinstance(faces, np.ndarray)
    assert faces.ndim == 2
    assert faces.shape[1] == 3
    assert faces.dtype == np.int32
    assert np.all(faces >= 0)
    assert np.all(faces < n_vertices)


def assert_unit(vector: np.ndarray, tol: float = 1e-9) -> None:
    assert abs(np.linalg.norm(vector) - 1.0) < tol


def assert_rotation_matrix(matrix: np.ndarray, tol: float = 1e-9) -> None:
    """Assert orthogonality and det = +1."""
    assert np.allclose(matrix @ matrix.T, np.eye(3), atol=tol)
    assert np.linalg.det(matrix) == pytest.approx(1.0, abs=tol)


def rotated(mesh: OrientMesh, matrix: np.ndarray, name: Optional[str] = None) -> OrientMesh:
    """Copy of a mesh with its vertices rotated."""
    return OrientMesh(name or mesh.name, mesh.vertices @ np.asarray(matrix).T, mesh.faces.copy())
