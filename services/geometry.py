"""Point-in-polygon evaluation for geographic (lat, lng) coordinates."""

from __future__ import annotations

from typing import Sequence

from models.records import Point


def contains_point(point: Point, polygon: Sequence[Point]) -> bool:
    """Ray-casting containment test.

    The polygon is treated as closed. An edge counts as a crossing when it
    straddles the query longitude (exactly one endpoint strictly east of it)
    and its latitude at that longitude lies above the query latitude.
    Points exactly on an edge have no defined answer, and polygons with fewer
    than three distinct, non-collinear vertices are not supported.
    """
    lat, lng = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        lat_i, lng_i = polygon[i]
        lat_j, lng_j = polygon[j]
        if (lng_i > lng) != (lng_j > lng):
            crossing_lat = lat_i + (lat_j - lat_i) * (lng - lng_i) / (lng_j - lng_i)
            if lat < crossing_lat:
                inside = not inside
        j = i
    return inside
