# tracematch

Tools for working with frequently travelled sections of GPS tracks.

A *section* is a stretch of road or trail that several activities share. A
`FrequentSection` holds a consensus polyline built from the overlapping
tracks. It also holds confidence and stability scores. Both scores rise as more
observations agree and fall as the observations spread out.

The package is pure Python and has no runtime dependencies.

## Installation

```
pip install .
```

The tests use pytest:

```
pip install ".[test]"
pytest
```

## Modules

| Module | Contents |
| --- | --- |
| `tracematch.geometry` | `GpsPoint` (frozen; latitude, longitude, optional elevation), `haversine_distance`, `compute_center`, `route_distance`, `bounds_overlap`, and `PointIndex`, a 2-d tree whose `nearest(latitude, longitude)` returns a `Neighbor(index, distance_sq)` in degree space |
| `tracematch.grid` | `GridCell` (0.05° cells, `from_point`, `with_neighbors`) and `downsample_track` |
| `tracematch.config` | `SectionConfig` (with `discovery()`, `conservative()` and `legacy()`), `ScalePreset` (`short()`, `medium()`, `long()`, `default_presets()`) and `compute_initial_stability` |
| `tracematch.consensus` | `compute_consensus_polyline`, which returns a `ConsensusResult` |
| `tracematch.sections` | `FrequentSection` and `SectionPortion` with `to_dict` / `from_dict` |
| `tracematch.results` | `PotentialSection` (with `to_dict` / `from_dict`), `DetectionStats` and `MultiScaleSectionResult` |
| `tracematch.route_matching` | `find_sections_in_route`, which returns `SectionMatch` items |
| `tracematch.splitting` | `split_section_at_index`, `split_section_at_point`, `recalculate_section_polyline` and `SplitResult` |
| `tracematch.evolution` | `update_section_with_new_traces`, `merge_overlapping_sections`, `blend_polylines` and `SectionUpdateResult` |
| `tracematch.dedup` | `remove_overlapping_sections_hierarchical` and `polyline_containment` |
| `tracematch.incremental` | `detect_sections_incremental`, `matches_section`, `find_overlap_downsampled`, `FullTrackOverlap` and `IncrementalResult` |

## Consensus

```python
from tracematch.config import SectionConfig
from tracematch.consensus import compute_consensus_polyline
from tracematch.geometry import GpsPoint, route_distance

reference = [GpsPoint(46.23 + i * 0.0002, 7.36 + i * 0.0002) for i in range(50)]
north = [GpsPoint(p.latitude + 0.00005, p.longitude) for p in reference]
south = [GpsPoint(p.latitude - 0.00005, p.longitude) for p in reference]

config = SectionConfig()
result = compute_consensus_polyline(reference, [reference, north, south], config.proximity_threshold)
print(len(result.polyline), round(result.confidence, 2), route_distance(result.polyline))
```

Each reference point is replaced by the inverse-distance weighted centroid of
the nearest point from each trace. Only traces whose nearest point lies within
the proximity threshold count toward it. `point_density` records how many
traces contributed at each point.

## Finding sections in a route

`find_sections_in_route(route, sections, config)` looks for each section in
both directions. For each section it finds, it returns a `SectionMatch` with
`start_index`, an exclusive `end_index`, `match_quality` and `same_direction`.
The results are ordered by start index. A match needs at least 60% of the
sampled section points to lie near the route. Routes and sections with fewer
than three points never match.

## Editing sections

- `split_section_at_index(section, i)` returns two halves that share point `i`.
  It returns `None` unless `0 < i < len(polyline) - 1`.
- `split_section_at_point(section, point, max_distance)` splits at the polyline
  point nearest to `point`. Both split functions mark the halves as user-defined.
- `recalculate_section_polyline(section, config)` rebuilds the polyline from the
  section's stored activity traces and increments `version`.

## Evolution

A section marked `is_user_defined` is never changed automatically.
`update_section_with_new_traces` adds only traces that pass near the section
and are not already included. It blends the new consensus into the old
polyline, and the more stable a section is, the less the blend moves it.
`merge_overlapping_sections` combines sections of one sport type into a single
section. It returns `None` if the sport types differ or if any of the sections
is user-defined.

`detect_sections_incremental` matches a new activity against existing sections
and refines the ones it matches. If nothing matches, it searches the recent
tracks and proposes at most one new section.

Progress is logged through the standard `logging` module.

## What the package does not do

The package has no batch detection step that turns a collection of raw
activities into sections. `MultiScaleSectionResult` and `DetectionStats` are
plain containers, and nothing in the package fills them. There is no
command-line tool, no persistence layer and no network client. Sections are
kept in memory and can be converted to and from dictionaries with
`to_dict` / `from_dict`.