# ============================================================================
# GEOMETRY VALIDATION TESTS
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Tests - GeoJSON-like geometry checks
# PURPOSE: Verify positions, ring closure, winding and self-intersection
# CREATED: 19 OCT 2026
# ============================================================================
"""
Geometry Validation Tests

Run with:
    pytest tests/test_geometry.py -v
"""

import pytest

from core.errors import InvalidGeometry
from core.geometry import (
    ring_self_intersects,
    segments_intersect,
    signed_area,
    validate_geometry,
)
from core.models import Geometry

SQUARE = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
HOLE = [[0.2, 0.2], [0.2, 0.8], [0.8, 0.8], [0.8, 0.2], [0.2, 0.2]]


class TestPositions:

    def test_point(self):
        assert validate_geometry({"type": "Point", "coordinates": [-1.9, 52.4]})["type"] == "Point"

    def test_point_with_altitude(self):
        validate_geometry({"type": "Point", "coordinates": [-1.9, 52.4, 140.0]})

    def test_out_of_range(self):
        with pytest.raises(InvalidGeometry, match="outside"):
            validate_geometry({"type": "Point", "coordinates": [181, 0]})

    def test_non_numeric(self):
        with pytest.raises(InvalidGeometry, match="numbers"):
            validate_geometry({"type": "Point", "coordinates": ["1", 2]})

    def test_line_string_needs_two_positions(self):
        with pytest.raises(InvalidGeometry):
            validate_geometry({"type": "LineString", "coordinates": [[0, 0]]})

    def test_unsupported_type(self):
        with pytest.raises(InvalidGeometry, match="Unsupported"):
            validate_geometry({"type": "Circle", "coordinates": [0, 0]})

    def test_accepts_model(self):
        validate_geometry(Geometry(type="MultiPoint", coordinates=[[0, 0], [1, 1]]))


class TestPolygons:

    def test_counter_clockwise_exterior(self):
        assert signed_area(SQUARE) > 0
        validate_geometry({"type": "Polygon", "coordinates": [SQUARE]})

    def test_clockwise_exterior_rejected(self):
        with pytest.raises(InvalidGeometry, match="counter-clockwise"):
            validate_geometry({"type": "Polygon", "coordinates": [list(reversed(SQUARE))]})

    def test_clockwise_hole(self):
        assert signed_area(HOLE) < 0
        validate_geometry({"type": "Polygon", "coordinates": [SQUARE, HOLE]})

    def test_counter_clockwise_hole_rejected(self):
        with pytest.raises(InvalidGeometry, match="clockwise"):
            validate_geometry({"type": "Polygon", "coordinates": [SQUARE, list(reversed(HOLE))]})

    def test_unclosed_ring(self):
        with pytest.raises(InvalidGeometry, match="closed"):
            validate_geometry({"type": "Polygon", "coordinates": [SQUARE[:-1]]})

    def test_self_intersecting_ring(self):
        ring = [[0, 0], [4, 0], [0, 4], [2, 4], [0, 0]]
        with pytest.raises(InvalidGeometry, match="intersect"):
            validate_geometry({"type": "Polygon", "coordinates": [ring]})

    def test_ring_folding_back_on_itself(self):
        # Edge out to (4, 6) returns along the same line to (4, 5)
        ring = [[0, 0], [4, 0], [4, 4], [4, 6], [4, 5], [0, 5], [0, 0]]
        assert signed_area(ring) > 0
        with pytest.raises(InvalidGeometry, match="intersect"):
            validate_geometry({"type": "Polygon", "coordinates": [ring]})

    def test_straight_run_through_vertex(self):
        ring = [[0, 0], [2, 0], [4, 0], [4, 4], [0, 4], [0, 0]]
        assert not ring_self_intersects(ring)
        validate_geometry({"type": "Polygon", "coordinates": [ring]})

    def test_fold_across_closing_vertex(self):
        ring = [[4, 0], [3, 0], [4, 4], [0, 4], [0, 0], [4, 0]]
        assert ring_self_intersects(ring)

    def test_multi_polygon(self):
        validate_geometry({"type": "MultiPolygon", "coordinates": [[SQUARE], [SQUARE, HOLE]]})


class TestSegments:

    def test_crossing(self):
        assert segments_intersect([0, 0], [2, 2], [0, 2], [2, 0])

    def test_collinear_overlap(self):
        assert segments_intersect([0, 0], [2, 0], [1, 0], [3, 0])

    def test_parallel(self):
        assert not segments_intersect([0, 0], [1, 0], [0, 1], [1, 1])
