from __future__ import annotations

from clusterspec.models import ClusterStats

TAG_SEPARATOR = " • "


def cluster_characteristics(stats: ClusterStats) -> list[str]:
    """Fixed-threshold descriptive tags for one cluster, in display order."""

    tags: list[str] = []

    if stats.avg_motion > 0.5:
        tags.append("High Motion")
    elif stats.avg_motion < 0.2:
        tags.append("Low Motion")
    else:
        tags.append("Medium Motion")

    if stats.avg_cut_rate > 120:
        tags.append("Fast Cuts")
    elif stats.avg_cut_rate < 30:
        tags.append("Slow Cuts")
    else:
        tags.append("Medium Pacing")

    # density and audio have a silent middle band
    if stats.avg_visual_density > 0.6:
        tags.append("Visually Dense")
    elif stats.avg_visual_density < 0.3:
        tags.append("Visually Simple")

    if stats.avg_audio_rms_mean > 0.5:
        tags.append("Loud Audio")
    elif stats.avg_audio_rms_mean < 0.2:
        tags.append("Quiet Audio")

    return tags


def describe_cluster(stats: ClusterStats | None) -> str:
    if stats is None:
        return ""
    return TAG_SEPARATOR.join(cluster_characteristics(stats))
