"""Coarse geographic grid cells and track downsampling."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from tracematch.geometry import GpsPoint

CELL_SIZE_DEG = 0.05  # roughly 5 km at the equator


@dataclass(frozen=True)
class GridCell:
    """A cell of a fixed-size latitude/longitude grid."""

    lat_idx: int
    lng_idx: int

    @classmethod
    def from_point(cls, lat: float, lng: float) -> GridCell:
        """The cell containing the given coordinates."""
        return cls(math.floor(lat / CELL_SIZE_DEG), math.floor(lng / CELL_SIZE_DEG))

    def with_neighbors(self) -> list[GridCell]:
        """This cell and its eight adjacent cells."""
        return [
            GridCell(self.lat_idx + dlat, self.lng_idx + dlng)
            for dlat in (-1, 0, 1)
            for dlng in (-1, 0, 1)
        ]


def downsample_track(track: Sequence[GpsPoint], target_points: int) -> list[GpsPoint]:
    """Evenly sample a track to about ``target_points``, keeping first and last points."""
    if len(track) <= target_points:
        return list(track)

    step = len(track) / target_points
    result = [track[0]]
    for i in range(1, target_points):
        idx = int(i * step)
        if 0 < idx < len(track):
            result.append(track[idx])
    if len(track) > 1:
        result.append(track[-1])
    return result