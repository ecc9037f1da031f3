"""Unit tests for the ray-casting containment check."""

from __future__ import annotations

from models.herd import DEFAULT_POLYGON
from services.geometry import contains_point

# An L-shaped (non-convex) field: the north-east quadrant is cut out.
L_SHAPE = (
    (0.0, 0.0),
    (0.0, 4.0),
    (2.0, 4.0),
    (2.0, 2.0),
    (4.0, 2.0),
    (4.0, 0.0),
)


def test_farm_centre_is_inside_default_geofence() -> None:
    assert contains_point((36.8175, 10.1835), DEFAULT_POLYGON) is True


def test_point_north_of_farm_is_outside() -> None:
    assert contains_point((36.9000, 10.1835), DEFAULT_POLYGON) is False


def test_points_far_outside_bounding_box_are_outside() -> None:
    far_points = [
        (0.0, 0.0),
        (-36.8175, -10.1835),
        (36.8175, 11.0),
        (36.8175, 9.0),
        (36.0, 10.1835),
        (89.9, 179.9),
    ]

    assert not any(contains_point(point, DEFAULT_POLYGON) for point in far_points)


def test_containment_is_deterministic() -> None:
    points = [(36.8175, 10.1835), (36.8199, 10.1801), (36.8210, 10.1835), (36.8160, 10.1880)]

    first = [contains_point(point, DEFAULT_POLYGON) for point in points]
    for _ in range(5):
        assert [contains_point(point, DEFAULT_POLYGON) for point in points] == first


def test_vertex_order_does_not_matter() -> None:
    reversed_polygon = tuple(reversed(DEFAULT_POLYGON))

    assert contains_point((36.8175, 10.1835), reversed_polygon)
    assert not contains_point((36.9000, 10.1835), reversed_polygon)


def test_non_convex_polygon_excludes_notch() -> None:
    assert contains_point((1.0, 1.0), L_SHAPE)
    assert contains_point((1.0, 3.0), L_SHAPE)
    assert contains_point((3.0, 1.0), L_SHAPE)
    assert not contains_point((3.0, 3.0), L_SHAPE)


def test_triangle() -> None:
    triangle = ((0.0, 0.0), (0.0, 10.0), (10.0, 0.0))

    assert contains_point((2.0, 2.0), triangle)
    assert not contains_point((6.0, 6.0), triangle)
