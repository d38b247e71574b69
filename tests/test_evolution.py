import pytest

from tracematch.config import SectionConfig, compute_initial_stability
from tracematch.evolution import (
    blend_polylines,
    merge_overlapping_sections,
    update_section_with_new_traces,
)
from tracematch.geometry import GpsPoint, route_distance
from tracematch.sections import FrequentSection, SectionPortion


def make_test_section(**overrides):
    values = dict(
        id="test_sec",
        name=None,
        sport_type="Run",
        polyline=[GpsPoint(46.23, 7.36), GpsPoint(46.24, 7.37)],
        representative_activity_id="act1",
        activity_ids=["act1"],
        activity_portions=[],
        route_ids=[],
        visit_count=1,
        distance_meters=1000.0,
        activity_traces={},
        confidence=0.5,
        observation_count=1,
        average_spread=25.0,
        point_density=[1, 1],
        scale="medium",
        version=1,
        is_user_defined=False,
        created_at=None,
        updated_at=None,
        stability=0.3,
    )
    values.update(overrides)
    return FrequentSection(**values)


def line(n=20, lat0=46.23, lng0=7.36, step=0.0005, lat_offset=0.0):
    return [GpsPoint(lat0 + i * step + lat_offset, lng0) for i in range(n)]


def test_user_defined_not_modified():
    section = make_test_section(is_user_defined=True)
    result = update_section_with_new_traces(section, {}, SectionConfig(), None)
    assert not result.was_modified
    assert result.new_activities_added == 0


def test_user_defined_with_near_trace_not_modified():
    section = make_test_section(polyline=line(), is_user_defined=True)
    traces = {"act2": line(lat_offset=0.00005)}
    result = update_section_with_new_traces(section, traces, SectionConfig(), "t")
    assert not result.was_modified
    assert result.section.version == 1
    assert result.section.activity_ids == ["act1"]


def test_empty_traces_not_modified():
    section = make_test_section()
    result = update_section_with_new_traces(section, {}, SectionConfig(), None)
    assert not result.was_modified
    assert result.confidence_delta == 0.0
    assert result.stability_delta == 0.0


def test_far_trace_not_modified():
    section = make_test_section(polyline=line())
    traces = {"far": line(lat0=40.0, lng0=-74.0)}
    result = update_section_with_new_traces(section, traces, SectionConfig(), None)
    assert not result.was_modified
    assert result.section.activity_ids == ["act1"]


def test_existing_activity_ignored():
    section = make_test_section(polyline=line())
    traces = {"act1": line(lat_offset=0.00005)}
    result = update_section_with_new_traces(section, traces, SectionConfig(), None)
    assert not result.was_modified


def test_update_with_near_trace():
    polyline = line()
    section = make_test_section(polyline=polyline, point_density=[1] * 20)
    trace = line(lat_offset=0.00005)
    config = SectionConfig()
    result = update_section_with_new_traces(
        section, {"act2": trace}, config, "2024-01-01T00:00:00Z"
    )
    updated = result.section

    assert result.was_modified
    assert result.new_activities_added == 1
    assert updated.version == 2
    assert updated.updated_at == "2024-01-01T00:00:00Z"
    assert updated.activity_ids == ["act1", "act2"]
    assert updated.visit_count == 2
    assert updated.observation_count == 1
    assert set(updated.activity_traces) == {"act2"}
    assert len(updated.polyline) == 20
    assert updated.point_density == [1] * 20
    assert updated.distance_meters == pytest.approx(route_distance(updated.polyline))
    assert updated.stability == pytest.approx(
        compute_initial_stability(1, updated.average_spread, config.proximity_threshold)
    )
    assert result.confidence_delta == pytest.approx(updated.confidence - 0.5)
    assert result.stability_delta == pytest.approx(updated.stability - 0.3)

    blend_factor = 1.0 - 0.3 * 0.7
    for old, new in zip(polyline, updated.polyline):
        assert new.latitude == pytest.approx(old.latitude + blend_factor * 0.00005, abs=1e-9)
        assert new.longitude == pytest.approx(old.longitude, abs=1e-9)

    assert len(updated.activity_portions) == 1
    portion = updated.activity_portions[0]
    assert portion.activity_id == "act2"
    assert portion.start_index == 0
    assert portion.end_index == len(trace)
    assert portion.direction == "same"

    # the input section is left untouched
    assert section.version == 1
    assert section.activity_ids == ["act1"]


def test_blend_polylines_extremes():
    old = [GpsPoint(0.0, 0.0), GpsPoint(1.0, 1.0)]
    new = [GpsPoint(2.0, 2.0), GpsPoint(3.0, 3.0)]

    assert blend_polylines(old, new, 0.0)[0].latitude == pytest.approx(0.0, abs=0.001)
    assert blend_polylines(old, new, 1.0)[0].latitude == pytest.approx(2.0, abs=0.001)
    assert blend_polylines(old, new, 0.5)[0].latitude == pytest.approx(1.0, abs=0.001)


def test_blend_polylines_matches_by_relative_position():
    old = [GpsPoint(0.0, 0.0), GpsPoint(10.0, 0.0), GpsPoint(20.0, 0.0)]
    new = [GpsPoint(100.0, 0.0)] * 5
    result = blend_polylines(old, new, 0.5)
    assert [p.latitude for p in result] == pytest.approx([50.0, 55.0, 55.0, 60.0, 60.0])


def test_blend_polylines_empty_old_keeps_new_points():
    new = [GpsPoint(1.0, 2.0, 5.0), GpsPoint(3.0, 4.0, 6.0)]
    assert blend_polylines([], new, 0.5) == new


def test_blend_polylines_drops_elevation():
    old = [GpsPoint(0.0, 0.0, 100.0)]
    new = [GpsPoint(2.0, 2.0, 200.0)]
    result = blend_polylines(old, new, 0.5)
    assert result == [GpsPoint(1.0, 1.0)]


def test_merge_empty_is_none():
    assert merge_overlapping_sections([], SectionConfig(), "m", None) is None


def test_merge_single_returns_copy():
    section = make_test_section()
    merged = merge_overlapping_sections([section], SectionConfig(), "m", None)
    assert merged == section
    assert merged is not section


def test_merge_user_defined_is_none():
    a = make_test_section()
    b = make_test_section(id="other", is_user_defined=True)
    assert merge_overlapping_sections([a, b], SectionConfig(), "m", None) is None


def test_merge_different_sports_is_none():
    a = make_test_section()
    b = make_test_section(id="other", sport_type="Ride")
    assert merge_overlapping_sections([a, b], SectionConfig(), "m", None) is None


def portion(activity_id, distance):
    return SectionPortion(
        activity_id=activity_id, start_index=0, end_index=5, distance_meters=distance
    )


def test_merge_two_sections():
    poly_a = line(n=10)
    poly_b = line(n=20)
    short_a2 = line(n=5)
    long_a2 = line(n=15)
    a = make_test_section(
        id="sec_a",
        polyline=poly_a,
        representative_activity_id="a1",
        activity_ids=["a2", "a1"],
        route_ids=["r2"],
        distance_meters=500.0,
        activity_traces={"a1": line(n=10), "a2": short_a2},
        activity_portions=[portion("a1", 10.0), portion("a2", 20.0)],
        scale="short",
    )
    b = make_test_section(
        id="sec_b",
        polyline=poly_b,
        representative_activity_id="a3",
        activity_ids=["a3", "a2"],
        route_ids=["r1", "r2"],
        distance_meters=1000.0,
        activity_traces={"a2": long_a2, "a3": line(n=20)},
        activity_portions=[portion("a2", 99.0), portion("a3", 30.0)],
        scale="medium",
    )
    merged = merge_overlapping_sections([a, b], SectionConfig(), "merged", "2024-02-02")

    assert merged.id == "merged"
    assert merged.name is None
    assert merged.sport_type == "Run"
    assert merged.activity_ids == ["a1", "a2", "a3"]
    assert merged.route_ids == ["r1", "r2"]
    assert merged.activity_traces["a2"] == long_a2
    assert merged.visit_count == 3
    assert merged.observation_count == 3
    assert merged.representative_activity_id == "a3"
    assert merged.scale == "medium"
    assert merged.distance_meters == pytest.approx(route_distance(poly_b))
    assert len(merged.polyline) == len(poly_b)
    assert [p.activity_id for p in merged.activity_portions] == ["a1", "a2", "a3"]
    assert merged.activity_portions[1].distance_meters == 20.0
    assert merged.version == 1
    assert merged.is_user_defined is False
    assert merged.created_at == "2024-02-02"
    assert merged.updated_at is None
    assert 0.0 <= merged.stability <= 1.0


def test_merge_equal_lengths_uses_last_as_reference():
    a = make_test_section(id="a", representative_activity_id="first", distance_meters=800.0)
    b = make_test_section(id="b", representative_activity_id="second", distance_meters=800.0)
    merged = merge_overlapping_sections([a, b], SectionConfig(), "m", None)
    assert merged.representative_activity_id == "second"