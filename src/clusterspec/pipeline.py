from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from clusterspec.features.characteristics import cluster_characteristics
from clusterspec.models import ClusterOverview, ClusterStats
from clusterspec.scoring.approach import suggest_approach
from clusterspec.scoring.radar import radar_table


def build_cluster_overviews(all_stats: Sequence[ClusterStats]) -> list[ClusterOverview]:
    """Join tags, radar values and the suggested approach for every cluster."""

    radar_by_cluster = radar_table(all_stats)

    overviews: list[ClusterOverview] = []
    for stats in all_stats:
        points = radar_by_cluster[stats.cluster]
        overviews.append(
            ClusterOverview(
                cluster=stats.cluster,
                count=stats.count,
                characteristics=cluster_characteristics(stats),
                radar=points,
                suggestion=suggest_approach(points),
                stats=stats,
            )
        )

    return overviews


def overview_payload(overview: ClusterOverview) -> dict[str, Any]:
    """JSON-ready view of one overview; source video rows are left out."""

    stats = overview.stats
    return {
        "cluster": overview.cluster,
        "count": overview.count,
        "characteristics": list(overview.characteristics),
        "suggestion": {
            "approach": overview.suggestion.approach,
            "confidence": overview.suggestion.confidence,
            "reason": overview.suggestion.reason,
        },
        "radar": {point.metric: round(point.value, 2) for point in overview.radar},
        "stats": {
            "avg_motion": stats.avg_motion,
            "min_motion": stats.min_motion,
            "max_motion": stats.max_motion,
            "avg_cut_rate": stats.avg_cut_rate,
            "min_cut_rate": stats.min_cut_rate,
            "max_cut_rate": stats.max_cut_rate,
            "avg_audio_rms_mean": stats.avg_audio_rms_mean,
            "avg_audio_rms_std": stats.avg_audio_rms_std,
            "avg_visual_density": stats.avg_visual_density,
            "min_visual_density": stats.min_visual_density,
            "max_visual_density": stats.max_visual_density,
        },
    }
