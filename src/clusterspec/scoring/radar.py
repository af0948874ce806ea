from __future__ import annotations

from collections.abc import Sequence

from clusterspec.models import ClusterId, ClusterStats, RadarPoint

# display metric -> ClusterStats attribute
RADAR_METRICS = {
    "Motion": "avg_motion",
    "Cut Rate": "avg_cut_rate",
    "Visual Density": "avg_visual_density",
    "Audio Volume": "avg_audio_rms_mean",
    "Audio Variance": "avg_audio_rms_std",
}
DEGENERATE_RANGE_VALUE = 50.0


def radar_points(all_stats: Sequence[ClusterStats], stats: ClusterStats) -> list[RadarPoint]:
    """Normalize one cluster's averages to 0-100 against every loaded cluster.

    The reference frame is the whole current cluster set, so results change
    whenever that set changes. A metric that is constant across clusters maps
    to 50 for everyone.
    """

    if not all_stats:
        return []

    bounds = _metric_bounds(all_stats)
    return _points_for(stats, bounds)


def radar_table(all_stats: Sequence[ClusterStats]) -> dict[ClusterId, list[RadarPoint]]:
    """Radar points for every cluster, computed against one shared frame."""

    if not all_stats:
        return {}

    bounds = _metric_bounds(all_stats)
    return {stats.cluster: _points_for(stats, bounds) for stats in all_stats}


def normalize(value: float, minimum: float, maximum: float) -> float:
    if maximum == minimum:
        return DEGENERATE_RANGE_VALUE
    return ((value - minimum) / (maximum - minimum)) * 100


def _metric_bounds(all_stats: Sequence[ClusterStats]) -> dict[str, tuple[float, float]]:
    bounds: dict[str, tuple[float, float]] = {}
    for metric, attribute in RADAR_METRICS.items():
        values = [getattr(stats, attribute) for stats in all_stats]
        bounds[metric] = (min(values), max(values))
    return bounds


def _points_for(stats: ClusterStats, bounds: dict[str, tuple[float, float]]) -> list[RadarPoint]:
    return [
        RadarPoint(metric=metric, value=normalize(getattr(stats, attribute), *bounds[metric]))
        for metric, attribute in RADAR_METRICS.items()
    ]
