"""GPS points, great-circle distances and a nearest-neighbour point index."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = 111_000.0


@dataclass(frozen=True)
class GpsPoint:
    """A GPS position in decimal degrees, with optional elevation in meters."""

    latitude: float
    longitude: float
    elevation: Optional[float] = None


def haversine_distance(p1: GpsPoint, p2: GpsPoint) -> float:
    """Great-circle distance between two points, in meters."""
    lat1 = math.radians(p1.latitude)
    lat2 = math.radians(p2.latitude)
    dlat = math.radians(p2.latitude - p1.latitude)
    dlon = math.radians(p2.longitude - p1.longitude)
    a = math.sin(dlat / 2.0) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2.0) ** 2
    return EARTH_RADIUS_M * 2.0 * math.asin(math.sqrt(min(1.0, a)))


def compute_center(points: Sequence[GpsPoint]) -> GpsPoint:
    """Arithmetic mean of the coordinates of the given points."""
    if not points:
        raise ValueError("cannot compute the center of no points")
    count = len(points)
    return GpsPoint(
        sum(p.latitude for p in points) / count,
        sum(p.longitude for p in points) / count,
    )


def route_distance(points: Sequence[GpsPoint]) -> float:
    """Total length of a polyline in meters."""
    return sum(haversine_distance(a, b) for a, b in zip(points, points[1:]))


def _bounds(track: Sequence[GpsPoint]) -> tuple[float, float, float, float]:
    lats = [p.latitude for p in track]
    lngs = [p.longitude for p in track]
    return min(lats), max(lats), min(lngs), max(lngs)


def bounds_overlap(
    track_a: Sequence[GpsPoint], track_b: Sequence[GpsPoint], threshold: float
) -> bool:
    """Whether the bounding boxes of two tracks, grown by ``threshold`` meters, intersect."""
    if not track_a or not track_b:
        return False
    margin = threshold / METERS_PER_DEGREE
    a_min_lat, a_max_lat, a_min_lng, a_max_lng = _bounds(track_a)
    b_min_lat, b_max_lat, b_min_lng, b_max_lng = _bounds(track_b)
    return (
        a_min_lat - margin <= b_max_lat + margin
        and b_min_lat - margin <= a_max_lat + margin
        and a_min_lng - margin <= b_max_lng + margin
        and b_min_lng - margin <= a_max_lng + margin
    )


class Neighbor(NamedTuple):
    """A nearest-neighbour hit: the point's position in the indexed sequence and
    its squared distance in degrees."""

    index: int
    distance_sq: float


class _Node:
    __slots__ = ("index", "axis", "left", "right")

    def __init__(self, index: int, axis: int, left: Optional[_Node], right: Optional[_Node]):
        self.index = index
        self.axis = axis
        self.left = left
        self.right = right


class PointIndex:
    """A 2-d tree over (latitude, longitude) for nearest-point queries in degree space."""

    def __init__(self, points: Sequence[GpsPoint]):
        self._coords = [(p.latitude, p.longitude) for p in points]
        self._root = self._build(list(range(len(self._coords))), 0)

    def __len__(self) -> int:
        return len(self._coords)

    def _build(self, indices: list[int], depth: int) -> Optional[_Node]:
        if not indices:
            return None
        axis = depth % 2
        indices.sort(key=lambda i: self._coords[i][axis])
        mid = len(indices) // 2
        return _Node(
            indices[mid],
            axis,
            self._build(indices[:mid], depth + 1),
            self._build(indices[mid + 1 :], depth + 1),
        )

    def nearest(self, latitude: float, longitude: float) -> Optional[Neighbor]:
        """The indexed point closest to the query, or None if the index is empty."""
        if self._root is None:
            return None
        query = (latitude, longitude)
        best_index = -1
        best_dist = math.inf
        stack = [self._root]
        while stack:
            node = stack.pop()
            lat, lng = self._coords[node.index]
            dist = (lat - latitude) ** 2 + (lng - longitude) ** 2
            if dist < best_dist:
                best_dist = dist
                best_index = node.index
            diff = query[node.axis] - self._coords[node.index][node.axis]
            near, far = (node.left, node.right) if diff < 0 else (node.right, node.left)
            if far is not None and diff * diff < best_dist:
                stack.append(far)
            if near is not None:
                stack.append(near)
        return Neighbor(best_index, best_dist)