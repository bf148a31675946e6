# ============================================================================
# GEOMETRY VALIDATION
# ============================================================================
# EPOCH: 1 - SENSOR CONTEXT
# STATUS: Core - GeoJSON-like geometry checks
# PURPOSE: Reject unknown geometry types, malformed positions, unclosed or
#          wrongly wound rings and self-intersecting polygons
# CREATED: 19 OCT 2026
# ============================================================================
"""
Geometry Validation

Validates the GeoJSON-like geometries stored on platform locations and
carried by location observations. Winding follows RFC 7946: exterior rings
counter-clockwise, holes clockwise.

Usage:
    from core.geometry import validate_geometry

    validate_geometry({"type": "Point", "coordinates": [-1.9, 52.4]})
"""

from typing import Any, Callable, Dict, List, Sequence

from core.errors import InvalidGeometry

Position = Sequence[float]


# ============================================================================
# POSITIONS
# ============================================================================

def _check_position(position: Any) -> None:
    if not isinstance(position, (list, tuple)) or len(position) not in (2, 3):
        raise InvalidGeometry(f"A position must be a list of 2 or 3 numbers, got {position!r}.")
    for value in position:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidGeometry(f"Position values must be numbers, got {position!r}.")
    lon, lat = position[0], position[1]
    if not -180 <= lon <= 180 or not -90 <= lat <= 90:
        raise InvalidGeometry(f"Position {position!r} is outside the valid longitude/latitude range.")


def _check_positions(positions: Any, minimum: int, what: str) -> None:
    if not isinstance(positions, (list, tuple)) or len(positions) < minimum:
        raise InvalidGeometry(f"A {what} needs at least {minimum} positions.")
    for position in positions:
        _check_position(position)


# ============================================================================
# RINGS
# ============================================================================

def signed_area(ring: Sequence[Position]) -> float:
    """Shoelace area; positive for counter-clockwise rings."""
    total = 0.0
    for (x1, y1, *_), (x2, y2, *_) in zip(ring, ring[1:]):
        total += x1 * y2 - x2 * y1
    return total / 2.0


def _orientation(p: Position, q: Position, r: Position) -> int:
    value = (q[1] - p[1]) * (r[0] - q[0]) - (q[0] - p[0]) * (r[1] - q[1])
    if value == 0:
        return 0
    return 1 if value > 0 else 2


def _on_segment(p: Position, q: Position, r: Position) -> bool:
    return (min(p[0], r[0]) <= q[0] <= max(p[0], r[0])
            and min(p[1], r[1]) <= q[1] <= max(p[1], r[1]))


def segments_intersect(p1: Position, q1: Position, p2: Position, q2: Position) -> bool:
    """True when segment p1-q1 touches or crosses segment p2-q2."""
    o1 = _orientation(p1, q1, p2)
    o2 = _orientation(p1, q1, q2)
    o3 = _orientation(p2, q2, p1)
    o4 = _orientation(p2, q2, q1)

    if o1 != o2 and o3 != o4:
        return True

    # Collinear special cases
    if o1 == 0 and _on_segment(p1, p2, q1):
        return True
    if o2 == 0 and _on_segment(p1, q2, q1):
        return True
    if o3 == 0 and _on_segment(p2, p1, q2):
        return True
    if o4 == 0 and _on_segment(p2, q1, q2):
        return True
    return False


def _doubles_back(a: Position, b: Position, c: Position) -> bool:
    """True when edge b-c runs back along edge a-b past the shared vertex b."""
    if _orientation(a, b, c) != 0:
        return False
    return (b[0] - a[0]) * (c[0] - b[0]) + (b[1] - a[1]) * (c[1] - b[1]) < 0


def ring_self_intersects(ring: Sequence[Position]) -> bool:
    """
    Check every pair of edges of a closed ring.

    Non-adjacent edges must not touch at all. Adjacent edges share a vertex
    by construction, so they only count when they fold back over each other.
    """
    edges = list(zip(ring, ring[1:]))
    count = len(edges)
    for i in range(count):
        for j in range(i + 1, count):
            if j == i + 1:
                if _doubles_back(edges[i][0], edges[i][1], edges[j][1]):
                    return True
                continue
            if i == 0 and j == count - 1:
                if _doubles_back(edges[j][0], edges[j][1], edges[i][1]):
                    return True
                continue
            if segments_intersect(edges[i][0], edges[i][1], edges[j][0], edges[j][1]):
                return True
    return False


def _check_ring(ring: Any, exterior: bool) -> None:
    _check_positions(ring, 4, "linear ring")
    if list(ring[0]) != list(ring[-1]):
        raise InvalidGeometry("A linear ring must be closed (first and last positions equal).")

    area = signed_area(ring)
    if area == 0:
        raise InvalidGeometry("A linear ring must enclose an area.")
    if exterior and area < 0:
        raise InvalidGeometry("A polygon's exterior ring must be wound counter-clockwise.")
    if not exterior and area > 0:
        raise InvalidGeometry("A polygon's interior rings must be wound clockwise.")

    if ring_self_intersects(ring):
        raise InvalidGeometry("A polygon ring must not intersect itself.")


# ============================================================================
# GEOMETRY TYPES
# ============================================================================

def _check_point(coordinates: Any) -> None:
    _check_position(coordinates)


def _check_multi_point(coordinates: Any) -> None:
    _check_positions(coordinates, 1, "MultiPoint")


def _check_line_string(coordinates: Any) -> None:
    _check_positions(coordinates, 2, "LineString")


def _check_multi_line_string(coordinates: Any) -> None:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        raise InvalidGeometry("A MultiLineString needs at least one LineString.")
    for line in coordinates:
        _check_line_string(line)


def _check_polygon(coordinates: Any) -> None:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        raise InvalidGeometry("A Polygon needs an exterior ring.")
    for index, ring in enumerate(coordinates):
        _check_ring(ring, exterior=index == 0)


def _check_multi_polygon(coordinates: Any) -> None:
    if not isinstance(coordinates, (list, tuple)) or not coordinates:
        raise InvalidGeometry("A MultiPolygon needs at least one Polygon.")
    for polygon in coordinates:
        _check_polygon(polygon)


_CHECKS: Dict[str, Callable[[Any], None]] = {
    "Point": _check_point,
    "MultiPoint": _check_multi_point,
    "LineString": _check_line_string,
    "MultiLineString": _check_multi_line_string,
    "Polygon": _check_polygon,
    "MultiPolygon": _check_multi_polygon,
}

SUPPORTED_TYPES: List[str] = list(_CHECKS)


def validate_geometry(geometry: Any) -> Dict[str, Any]:
    """
    Validate a geometry and return it as a plain dict.

    Accepts a dict or any object with model_dump() (the Geometry model).

    Raises:
        InvalidGeometry: unknown type or malformed coordinates.
    """
    if hasattr(geometry, "model_dump"):
        geometry = geometry.model_dump()
    if not isinstance(geometry, dict):
        raise InvalidGeometry("A geometry must be an object with 'type' and 'coordinates'.")

    geometry_type = geometry.get("type")
    check = _CHECKS.get(geometry_type)
    if check is None:
        raise InvalidGeometry(
            f"Unsupported geometry type {geometry_type!r}. Supported: {', '.join(SUPPORTED_TYPES)}."
        )
    if "coordinates" not in geometry:
        raise InvalidGeometry("A geometry must have coordinates.")

    check(geometry["coordinates"])
    return geometry


__all__ = [
    "validate_geometry",
    "signed_area",
    "segments_intersect",
    "ring_self_intersects",
    "SUPPORTED_TYPES",
]
