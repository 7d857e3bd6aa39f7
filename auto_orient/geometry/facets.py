"""
Columnar per-facet buffers consumed by the orientation engine.

Facet normals are quantized before use so that near-identical normals
collide into one bucket when areas are accumulated per direction.

Quantization invariant: a normal ``n`` maps to the integer key
``floor(n * 10**NORMAL_DECIMALS)`` and to the direction ``key / 10**NORMAL_DECIMALS``.
Changing NORMAL_DECIMALS changes clustering and therefore the chosen
orientation for many meshes.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from auto_orient.geometry.mesh_stats import calculate_face_areas, calculate_face_normals

logger = logging.getLogger(__name__)

NORMAL_DECIMALS = 3
_QUANT_SCALE = 10 ** NORMAL_DECIMALS


def quantize_keys(normals: NDArray[np.float64]) -> NDArray[np.int64]:
    """Map normals (..., 3) to integer bucket keys (..., 3)."""
    return np.floor(np.asarray(normals, dtype=np.float64) * _QUANT_SCALE).astype(np.int64)


def key_to_direction(key: Tuple[int, int, int]) -> NDArray[np.float64]:
    """Canonical direction represented by a bucket key."""
    return np.asarray(key, dtype=np.float64) / _QUANT_SCALE


@dataclass
class FacetSet:
    """Struct-of-arrays view of a triangle mesh.

    Facets below the negligible-area threshold stay in the arrays (their
    vertices still bound the mesh) but carry zero area, zero normal and no
    appearance flag, so they drop out of every area-weighted sum.

    Attributes:
        triangles: (F, 3, 3) vertex positions per facet
        normals: (F, 3) quantized unit normals
        keys: (F, 3) integer bucket keys of the quantized normals
        areas: (F,) facet areas
        appearance: (F,) appearance flags
        included: (F,) False for negligible facets
    """
    triangles: NDArray[np.float64]
    normals: NDArray[np.float64]
    keys: NDArray[np.int64]
    areas: NDArray[np.float64]
    appearance: NDArray[np.bool_]
    included: NDArray[np.bool_]

    @property
    def count(self) -> int:
        return int(len(self.areas))

    @property
    def n_appearance(self) -> int:
        return int(self.appearance.sum())

    @classmethod
    def empty(cls) -> 'FacetSet':
        return cls(
            triangles=np.zeros((0, 3, 3), dtype=np.float64),
            normals=np.zeros((0, 3), dtype=np.float64),
            keys=np.zeros((0, 3), dtype=np.int64),
            areas=np.zeros(0, dtype=np.float64),
            appearance=np.zeros(0, dtype=bool),
            included=np.zeros(0, dtype=bool),
        )

    @classmethod
    def from_mesh(
        cls,
        vertices: NDArray[np.float64],
        faces: NDArray[np.int32],
        negl_face_size: float = 0.0,
        appearance: Optional[NDArray[np.bool_]] = None,
    ) -> 'FacetSet':
        """Build facet buffers from an indexed triangle mesh.

        Args:
            vertices: (N, 3) vertex positions
            faces: (M, 3) vertex indices
            negl_face_size: facets with a smaller area are excluded
                (0 disables the filter)
            appearance: optional (M,) per-facet appearance flags

        Raises:
            ValueError: if appearance flags do not match the facet count
        """
        vertices = np.asarray(vertices, dtype=np.float64)
        faces = np.asarray(faces, dtype=np.int32).reshape(-1, 3)
        if len(faces) == 0:
            return cls.empty()

        areas = calculate_face_areas(vertices, faces)
        keys = quantize_keys(calculate_face_normals(vertices, faces))

        if appearance is None:
            flags = np.zeros(len(faces), dtype=bool)
        else:
            flags = np.asarray(appearance, dtype=bool).copy()
            if flags.shape != (len(faces),):
                raise ValueError(
                    f"appearance flags must have shape ({len(faces)},), got {flags.shape}"
                )

        if negl_face_size > 0:
            included = areas >= negl_face_size
        else:
            included = np.ones(len(faces), dtype=bool)

        areas = np.where(included, areas, 0.0)
        keys = np.where(included[:, None], keys, 0)
        normals = keys / _QUANT_SCALE
        flags &= included

        n_skipped = int((~included).sum())
        if n_skipped:
            logger.debug("Ignoring %d negligible facets (area < %g)", n_skipped, negl_face_size)

        return cls(
            triangles=vertices[faces],
            normals=normals,
            keys=keys,
            areas=areas,
            appearance=flags,
            included=included,
        )
