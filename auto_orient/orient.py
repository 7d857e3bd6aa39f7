"""
Orientation of mesh collections.

Provides:
- orient_mesh: run the orienter on one mesh and fill its result slot
- orient_meshes: sequential or thread-pool fan-out with progress
  reporting and cooperative cancellation
- apply_orientation: rotated, bed-placed copy of a mesh's vertices

Usage:
    from auto_orient.orient import OrientMesh, orient_meshes

    meshes = [OrientMesh("bracket", vertices, faces)]
    report = orient_meshes(meshes, params, progressind=print)
    print(meshes[0].result.euler_angles)
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from auto_orient.orientation.orienter import AutoOrienter, OrientationResult, OrientMesh
from auto_orient.orientation.params import OrientParams
from auto_orient.orientation.rotation import Rotation3D, place_on_bed, rotation_to_build_direction

logger = logging.getLogger(__name__)

ProgressFn = Callable[[int, str], None]
StopFn = Callable[[], bool]


@dataclass
class OrientBatchReport:
    """Outcome of one orient_meshes call."""
    total: int = 0
    completed: int = 0
    cancelled: int = 0
    duration_seconds: float = 0.0

    @property
    def stopped(self) -> bool:
        """True if the stop condition cut the run short."""
        return self.cancelled > 0

    def summary(self) -> str:
        return (f"{self.completed}/{self.total} meshes oriented"
                f"{f', {self.cancelled} cancelled' if self.cancelled else ''}"
                f" in {self.duration_seconds:.2f}s")


def orient_mesh(
    mesh: OrientMesh,
    params: Optional[OrientParams] = None,
    step_progress: Optional[Callable[[int], None]] = None,
) -> OrientationResult:
    """Orient one mesh and write the result into ``mesh.result``.

    Args:
        mesh: mesh slot (geometry is only read)
        params: orientation parameters (defaults if None)
        step_progress: receives coarse percentages (20, 30, 60, 80, 100)

    Returns:
        The stored OrientationResult
    """
    orienter = AutoOrienter(mesh, params, step_progress)
    orientation, costs = orienter.process()

    axis, angle, rotation = rotation_to_build_direction(orientation)
    result = OrientationResult(
        orientation=orientation / np.linalg.norm(orientation),
        axis=axis,
        angle=angle,
        rotation_matrix=rotation.matrix,
        euler_angles=rotation.euler_xyz,
        costs=costs,
        n_candidates=len(orienter.candidates),
    )
    mesh.result = result

    logger.info(
        "%s: v,phi: %s, %.3f",
        mesh.name, np.array2string(axis, precision=3), angle,
        extra={"mesh": mesh.name, "unprintability": costs.unprintability},
    )
    return result


def orient_meshes(
    meshes: Sequence[OrientMesh],
    params: Optional[OrientParams] = None,
    progressind: Optional[ProgressFn] = None,
    stopcondition: Optional[StopFn] = None,
) -> OrientBatchReport:
    """Orient every mesh of a collection.

    The stop condition is polled before each mesh starts; a mesh that has
    started always completes, and results already written stay intact.
    In sequential mode progress calls follow index order; in parallel mode
    they may interleave.

    Args:
        meshes: mesh slots, each receives its own result
        params: orientation parameters; ``params.parallel`` selects the
            thread pool, ``params.max_workers`` its size
        progressind: called as ``(index, name)`` before each mesh starts
        stopcondition: returns True to abandon remaining meshes

    Returns:
        OrientBatchReport with completed and cancelled counts
    """
    params = params or OrientParams()
    start_time = time.perf_counter()
    report = OrientBatchReport(total=len(meshes))

    def run_one(index: int) -> bool:
        if stopcondition and stopcondition():
            return False
        mesh = meshes[index]
        if progressind:
            progressind(index, mesh.name)
        orient_mesh(mesh, params)
        return True

    logger.info("Orienting %d meshes, parallel=%s", len(meshes), params.parallel)

    if params.parallel and len(meshes) > 1:
        with ThreadPoolExecutor(max_workers=params.max_workers) as executor:
            futures = [executor.submit(run_one, i) for i in range(len(meshes))]
            # Joined in submission order so the first failure surfaces deterministically
            outcomes: List[bool] = [future.result() for future in futures]
        report.completed = sum(outcomes)
        report.cancelled = len(outcomes) - report.completed
    else:
        for i in range(len(meshes)):
            if not run_one(i):
                report.cancelled = len(meshes) - i
                logger.info("Stop requested, %d meshes left unoriented", report.cancelled)
                break
            report.completed += 1

    report.duration_seconds = time.perf_counter() - start_time
    logger.info("Orientation complete: %s", report.summary())
    return report


def apply_orientation(mesh: OrientMesh) -> NDArray[np.float64]:
    """Return the mesh vertices rotated by its result and resting on z = 0.

    Raises:
        ValueError: if the mesh has not been oriented yet
    """
    if mesh.result is None:
        raise ValueError(f"mesh {mesh.name!r} has no orientation result")
    return place_on_bed(mesh.vertices, Rotation3D(mesh.result.rotation_matrix))
