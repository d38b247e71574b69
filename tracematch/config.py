"""Section detection configuration and scale presets."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ScalePreset:
    """Length band and activity threshold for one detection scale."""

    name: str
    min_length: float
    max_length: float
    min_activities: int

    @classmethod
    def short(cls) -> ScalePreset:
        """Sections of 100 m to 500 m seen in at least two activities."""
        return cls("short", 100.0, 500.0, 2)

    @classmethod
    def medium(cls) -> ScalePreset:
        """Sections of 500 m to 2 km seen in at least two activities."""
        return cls("medium", 500.0, 2000.0, 2)

    @classmethod
    def long(cls) -> ScalePreset:
        """Sections of 2 km to 5 km seen in at least three activities."""
        return cls("long", 2000.0, 5000.0, 3)

    @classmethod
    def default_presets(cls) -> list[ScalePreset]:
        """The short, medium and long presets, in that order."""
        return [cls.short(), cls.medium(), cls.long()]


@dataclass
class SectionConfig:
    """Parameters that control section detection.

    Distances are in meters. An empty ``scale_presets`` list means single-scale
    detection driven by ``min_section_length`` and ``max_section_length``.
    """

    proximity_threshold: float = 50.0
    min_section_length: float = 200.0
    max_section_length: float = 5000.0
    min_activities: int = 3
    cluster_tolerance: float = 80.0
    sample_points: int = 50
    detection_mode: str = "discovery"
    include_potentials: bool = True
    scale_presets: list[ScalePreset] = field(default_factory=lambda: ScalePreset.default_presets())
    preserve_hierarchy: bool = True

    @classmethod
    def discovery(cls) -> SectionConfig:
        """Lower thresholds, more sections, potentials included."""
        return cls(
            detection_mode="discovery",
            include_potentials=True,
            scale_presets=ScalePreset.default_presets(),
            preserve_hierarchy=True,
        )

    @classmethod
    def conservative(cls) -> SectionConfig:
        """Higher thresholds and fewer sections."""
        return cls(
            detection_mode="conservative",
            include_potentials=False,
            min_activities=4,
            scale_presets=[ScalePreset.medium(), ScalePreset.long()],
            preserve_hierarchy=False,
        )

    @classmethod
    def legacy(cls) -> SectionConfig:
        """Single-scale detection using the min/max section lengths directly."""
        return cls(
            detection_mode="legacy",
            include_potentials=False,
            scale_presets=[],
            preserve_hierarchy=False,
            min_activities=3,
        )


def compute_initial_stability(
    observation_count: int, average_spread: float, proximity_threshold: float
) -> float:
    """Stability in [0, 1]: grows with observations, shrinks with spread."""
    obs_factor = min(observation_count / 10.0, 1.0)
    spread_factor = 1.0 - min(max(average_spread / proximity_threshold, 0.0), 1.0)
    return min(max(obs_factor * 0.6 + spread_factor * 0.4, 0.0), 1.0)