"""GPS route sections: consensus polylines, route matching, splitting, merging and incremental updates."""

__version__ = "0.0.4"

__all__ = [
    "config",
    "consensus",
    "dedup",
    "evolution",
    "geometry",
    "grid",
    "incremental",
    "results",
    "route_matching",
    "sections",
    "splitting",
]