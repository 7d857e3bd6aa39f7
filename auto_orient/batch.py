"""
Batch orientation of STL folders.

Provides:
- Folder-based batch orientation (STL -> oriented STL)
- Progress tracking, cancellation and JSON reporting
- Parallel orientation through orient_meshes
- Per-file error capture

Usage:
    from auto_orient.batch import batch_orient

    results = batch_orient(
        input_dir="./models",
        output_dir="./oriented",
    )
    print(results.summary())
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import numpy as np

from auto_orient.io.stl_loader import load_stl, save_stl
from auto_orient.orient import apply_orientation, orient_meshes
from auto_orient.orientation.orienter import OrientMesh
from auto_orient.project_config import ProjectConfig, load_config

logger = logging.getLogger(__name__)

REPORT_FILENAME = "orientation_report.json"


@dataclass
class FileOrientResult:
    """Result of orienting a single file."""
    input_path: Path
    output_path: Optional[Path] = None
    success: bool = False
    cancelled: bool = False
    error: Optional[str] = None
    orientation: Optional[List[float]] = None
    euler_angles_deg: Optional[List[float]] = None
    unprintability: Optional[float] = None

    @property
    def status(self) -> str:
        if self.success:
            return "OK"
        return "CANCELLED" if self.cancelled else "FAILED"

    def to_dict(self) -> Dict:
        return {
            'input': str(self.input_path),
            'output': str(self.output_path) if self.output_path else None,
            'status': self.status,
            'error': self.error,
            'orientation': self.orientation,
            'euler_angles_deg': self.euler_angles_deg,
            'unprintability': self.unprintability,
        }


@dataclass
class BatchResult:
    """Result of batch orientation."""
    results: List[FileOrientResult] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def cancelled(self) -> int:
        return sum(1 for r in self.results if r.cancelled)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success and not r.cancelled)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.successful / self.total

    def summary(self) -> str:
        """Generate human-readable summary."""
        lines = [
            "Batch Orientation Summary",
            "=" * 40,
            f"Total files:     {self.total}",
            f"Successful:      {self.successful}",
            f"Failed:          {self.failed}",
            f"Cancelled:       {self.cancelled}",
            f"Success rate:    {self.success_rate:.1f}%",
            f"Total time:      {self.total_duration_seconds:.1f}s",
            "",
        ]

        if self.failed > 0:
            lines.append("Failed files:")
            for r in self.results:
                if r.status == "FAILED":
                    lines.append(f"  - {r.input_path.name}: {r.error}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'cancelled': self.cancelled,
            'success_rate': self.success_rate,
            'total_duration_seconds': self.total_duration_seconds,
            'results': [r.to_dict() for r in self.results],
        }


def find_stl_files(
    input_dir: Union[str, Path],
    pattern: str = "*.stl",
    recursive: bool = False,
) -> List[Path]:
    """Find STL files in directory (either extension case).

    Raises:
        FileNotFoundError: if the directory does not exist
        NotADirectoryError: if the path is not a directory
    """
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")

    if not input_dir.is_dir():
        raise NotADirectoryError(f"Not a directory: {input_dir}")

    search = input_dir.rglob if recursive else input_dir.glob
    files = list(search(pattern))
    files.extend(search(pattern.replace('.stl', '.STL')))

    files = sorted(set(files))

    logger.info("Found %d STL files in %s", len(files), input_dir)
    return files


def _output_path(input_path: Path, output_dir: Path, prefix: str, suffix: str) -> Path:
    return output_dir / f"{prefix}{input_path.stem}{suffix}.stl"


def batch_orient(
    input_dir: Union[str, Path],
    output_dir: Optional[Union[str, Path]] = None,
    config: Optional[ProjectConfig] = None,
    config_path: Optional[Union[str, Path]] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
    stopcondition: Optional[Callable[[], bool]] = None,
) -> BatchResult:
    """Orient every STL file of a folder and write the oriented copies.

    All files are loaded first, oriented together by orient_meshes, then
    written. Load, orientation and write failures are recorded per file.

    Args:
        input_dir: Directory containing STL files
        output_dir: Output directory (default: config output_dir, else input)
        config: Project configuration
        config_path: Path to .orient.json config file
        progress_callback: Called before each mesh: (current, total, name)
        stopcondition: Returns True to leave remaining meshes unoriented

    Returns:
        BatchResult with per-file outcomes
    """
    start_time = time.perf_counter()
    input_dir = Path(input_dir)

    if config is None:
        config = load_config(
            stl_path=input_dir / "dummy.stl",
            explicit_config=config_path,
        )

    stl_files = find_stl_files(input_dir, config.batch.pattern, config.batch.recursive)
    if not stl_files:
        logger.warning("No STL files found in %s", input_dir)
        return BatchResult(total_duration_seconds=time.perf_counter() - start_time)

    if output_dir is None:
        output_dir = input_dir / config.output.output_dir if config.output.output_dir else input_dir
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    results = [FileOrientResult(input_path=path) for path in stl_files]
    meshes: List[OrientMesh] = []
    loaded: List[FileOrientResult] = []

    for result in results:
        try:
            vertices, faces = load_stl(str(result.input_path))
        except Exception as e:
            result.error = str(e)
            logger.error("Failed to load %s: %s", result.input_path.name, e)
            continue
        meshes.append(OrientMesh(name=result.input_path.stem, vertices=vertices, faces=faces))
        loaded.append(result)

    def on_progress(index: int, name: str) -> None:
        logger.info("[%d/%d] Orienting %s", index + 1, len(meshes), name)
        if progress_callback:
            progress_callback(index + 1, len(meshes), name)

    params = config.orient_params()
    try:
        orient_meshes(meshes, params, on_progress, stopcondition)
    except Exception as e:
        # Meshes oriented before the failure keep their results
        logger.error("Orientation failed: %s", e)
        for mesh, result in zip(meshes, loaded):
            if mesh.result is None:
                result.error = str(e)

    for mesh, result in zip(meshes, loaded):
        if mesh.result is None:
            result.cancelled = result.error is None
            continue
        output_path = _output_path(result.input_path, output_dir,
                                   config.output.prefix, config.output.suffix)
        try:
            save_stl(str(output_path), apply_orientation(mesh), mesh.faces)
        except Exception as e:
            result.error = str(e)
            logger.error("Failed to write %s: %s", output_path.name, e)
            continue
        result.success = True
        result.output_path = output_path
        result.orientation = mesh.result.orientation.tolist()
        result.euler_angles_deg = np.degrees(mesh.result.euler_angles).tolist()
        result.unprintability = float(mesh.result.costs.unprintability)

    batch_result = BatchResult(
        results=results,
        total_duration_seconds=time.perf_counter() - start_time,
    )

    if config.output.write_report:
        report_path = output_dir / REPORT_FILENAME
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(batch_result.to_dict(), f, indent=2)
        logger.info("Report written to %s", report_path)

    logger.info(
        "Batch orientation complete: %d/%d successful (%.1f%%) in %.1fs",
        batch_result.successful, batch_result.total,
        batch_result.success_rate, batch_result.total_duration_seconds
    )
    return batch_result


def batch_orient_cli(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for batch orientation."""
    import argparse

    from auto_orient.logging_config import configure_default_logging

    parser = argparse.ArgumentParser(
        description="Orient every STL file of a folder for 3D printing"
    )
    parser.add_argument("input_dir", help="Directory containing STL files")
    parser.add_argument(
        "-o", "--output",
        dest="output_dir",
        help="Output directory (default: from config, else same as input)"
    )
    parser.add_argument(
        "-p", "--pattern",
        help="File pattern (default: *.stl)"
    )
    parser.add_argument(
        "-r", "--recursive",
        action="store_true",
        help="Search subdirectories"
    )
    parser.add_argument(
        "-c", "--config",
        dest="config_path",
        help="Path to .orient.json config file"
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Orient meshes one after another"
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        dest="max_workers",
        help="Maximum parallel jobs"
    )
    parser.add_argument("--prefix", help="Output filename prefix")
    parser.add_argument("--suffix", help="Output filename suffix")
    parser.add_argument(
        "--overhang-angle",
        type=float,
        dest="overhang_angle",
        help="Overhang angle in degrees (default: 60)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every candidate")

    args = parser.parse_args(argv)
    configure_default_logging(verbose=args.verbose)

    try:
        config = load_config(
            stl_path=Path(args.input_dir) / "dummy.stl",
            explicit_config=args.config_path,
        )
        if args.pattern:
            config.batch.pattern = args.pattern
        if args.recursive:
            config.batch.recursive = True
        if args.sequential:
            config.batch.parallel = False
        if args.max_workers:
            config.batch.max_workers = args.max_workers
        if args.prefix is not None:
            config.output.prefix = args.prefix
        if args.suffix is not None:
            config.output.suffix = args.suffix
        if args.overhang_angle is not None:
            config.orientation = config.orientation.with_overrides(
                overhang_angle=args.overhang_angle
            )

        result = batch_orient(
            input_dir=args.input_dir,
            output_dir=args.output_dir,
            config=config,
        )

        print("\n" + result.summary())

        return 0 if result.failed == 0 else 1

    except Exception as e:
        logger.error("Batch orientation failed: %s", e)
        return 1


if __name__ == "__main__":
    import sys
    sys.exit(batch_orient_cli())
