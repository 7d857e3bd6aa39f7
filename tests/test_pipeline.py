"""
Tests for the single-file pipeline (load -> orient -> save).
"""

import json
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from auto_orient.io.stl_loader import STLLoadError, load_stl
from auto_orient.orient import orient_mesh
from auto_orient.orientation.params import OrientParams
from auto_orient.pipeline import run_pipeline
from auto_orient.project_config import ProjectConfig
from tests.conftest import make_mushroom, write_stl


@pytest.fixture
def mushroom_stl_path(tmp_path):
    """Binary STL of the mushroom test shape."""
    return write_stl(tmp_path / "mushroom.stl", *make_mushroom())


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_writes_placed_mesh(self, mushroom_stl_path, tmp_path):
        """Test the oriented mesh is written on the bed."""
        output = tmp_path / "out" / "mushroom_oriented.stl"

        result = run_pipeline(str(mushroom_stl_path), str(output))

        assert np.allclose(result.orientation, [0, 0, -1])
        vertices, faces = load_stl(str(output))
        assert len(faces) == 24
        assert vertices[:, 2].min() == pytest.approx(0.0, abs=1e-5)
        assert vertices[:, 2].max() == pytest.approx(1.5, abs=1e-5)

    def test_dry_run_writes_nothing(self, pillar_stl_path, tmp_path):
        """Test no output path writes nothing."""
        result = run_pipeline(str(pillar_stl_path))

        assert result.n_candidates > 0
        assert sorted(p.name for p in tmp_path.iterdir()) == ["pillar.stl"]

    def test_report(self, mushroom_stl_path, tmp_path):
        """Test JSON report contents."""
        report = tmp_path / "report.json"

        run_pipeline(str(mushroom_stl_path), report_path=str(report))

        data = json.loads(report.read_text())
        assert data["input"] == str(mushroom_stl_path)
        assert data["output"] is None
        assert data["orientation"] == pytest.approx([0.0, 0.0, -1.0], abs=1e-9)
        assert "unprintability" in data["costs"]

    def test_params_take_precedence_over_config(self, pillar_stl_path):
        """Test explicit parameters beat the config file."""
        config = ProjectConfig()
        config.orientation = OrientParams(overhang_angle=30.0)
        params = OrientParams(overhang_angle=75.0)

        with patch("auto_orient.pipeline.orient_mesh", wraps=orient_mesh) as spy:
            run_pipeline(str(pillar_stl_path), config=config)
            run_pipeline(str(pillar_stl_path), config=config, params=params)

        assert spy.call_args_list[0].args[1].overhang_angle == 30.0
        assert spy.call_args_list[1].args[1] is params

    def test_step_progress(self, pillar_stl_path):
        """Test step progress is forwarded."""
        progress = MagicMock()
        run_pipeline(str(pillar_stl_path), step_progress=progress)
        assert [c.args[0] for c in progress.call_args_list] == [20, 30, 60, 80, 100]

    def test_missing_file(self, tmp_path):
        """Test missing input raises STLLoadError."""
        with pytest.raises(STLLoadError):
            run_pipeline(str(tmp_path / "missing.stl"))
