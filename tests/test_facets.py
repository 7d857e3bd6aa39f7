"""
Unit tests for auto_orient.geometry.facets module.
"""

import numpy as np
import pytest

from auto_orient.geometry.facets import FacetSet, key_to_direction, quantize_keys
from tests.conftest import make_box


class TestQuantization:
    """Tests for normal quantization."""

    def test_floor_to_three_decimals(self):
        """Test keys floor to three decimals."""
        keys = quantize_keys(np.array([[0.12345, -0.12345, 1.0]]))
        assert keys.tolist() == [[123, -124, 1000]]

    def test_key_to_direction(self):
        """Test key to unit direction conversion."""
        assert np.allclose(key_to_direction((0, 0, -1000)), [0.0, 0.0, -1.0])


class TestFacetSet:
    """Tests for FacetSet.from_mesh."""

    def test_from_box(self):
        """Test buffers built from a box."""
        vertices, faces = make_box((0, 0, 0), (2, 2, 2))
        facets = FacetSet.from_mesh(vertices, faces)

        assert facets.count == 12
        assert facets.triangles.shape == (12, 3, 3)
        assert np.allclose(facets.areas, 2.0)
        assert np.allclose(facets.normals[0], [0, 0, -1])
        assert facets.keys[0].tolist() == [0, 0, -1000]
        assert facets.n_appearance == 0
        assert facets.included.all()

    def test_normals_are_quantized(self):
        """Test stored normals equal their keys."""
        vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 3.0]])
        facets = FacetSet.from_mesh(vertices, np.array([[0, 1, 2]]))
        assert np.allclose(facets.normals, facets.keys / 1000.0)

    def test_negligible_facets_zeroed(self):
        """Test tiny facets are excluded and zeroed."""
        vertices, faces = make_box((0, 0, 0), (1, 1, 0.01))
        facets = FacetSet.from_mesh(vertices, faces, negl_face_size=0.01)

        # 0.005 area side facets drop out, 0.5 area caps stay
        assert facets.included.sum() == 4
        assert np.all(facets.areas[~facets.included] == 0.0)
        assert np.all(facets.keys[~facets.included] == 0)
        assert facets.count == 12

    def test_appearance_flags(self):
        """Test appearance flags are counted."""
        vertices, faces = make_box()
        flags = np.zeros(12, dtype=bool)
        flags[:2] = True
        facets = FacetSet.from_mesh(vertices, faces, appearance=flags)
        assert facets.n_appearance == 2

    def test_appearance_cleared_on_negligible_facets(self):
        """Test negligible facets lose their appearance flag."""
        vertices, faces = make_box((0, 0, 0), (1, 1, 0.01))
        flags = np.ones(12, dtype=bool)
        facets = FacetSet.from_mesh(vertices, faces, negl_face_size=0.01, appearance=flags)
        assert facets.n_appearance == 4

    def test_appearance_shape_mismatch(self):
        """Test wrong flag length raises ValueError."""
        vertices, faces = make_box()
        with pytest.raises(ValueError):
            FacetSet.from_mesh(vertices, faces, appearance=np.zeros(5, dtype=bool))

    def test_input_flags_not_modified(self):
        """Test caller flags are copied."""
        vertices, faces = make_box((0, 0, 0), (1, 1, 0.01))
        flags = np.ones(12, dtype=bool)
        FacetSet.from_mesh(vertices, faces, negl_face_size=0.01, appearance=flags)
        assert flags.all()

    def test_empty(self):
        """Test empty mesh."""
        facets = FacetSet.from_mesh(np.zeros((0, 3)), np.zeros((0, 3), dtype=np.int32))
        assert facets.count == 0
        assert facets.triangles.shape == (0, 3, 3)
