from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

import numpy as np

from clusterspec.ingest.tables import coerce_cluster_id
from clusterspec.models import ClusterId, ClusterStats, VideoRecord, cluster_sort_key

logger = logging.getLogger(__name__)

CLUSTER_FIELD = "cluster"

# stats attribute suffix -> source column
METRIC_FIELDS = {
    "motion": "motion_mean",
    "cut_rate": "cut_rate_per_min",
    "audio_rms_mean": "audio_rms_mean",
    "audio_rms_std": "audio_rms_std",
    "visual_density": "visual_density",
}
RANGED_METRICS = ("motion", "cut_rate", "visual_density")


def aggregate_clusters(rows: Iterable[VideoRecord]) -> list[ClusterStats]:
    """Group video rows by cluster id and compute per-cluster statistics.

    Missing, blank, non-numeric or non-finite metric values count as 0 and
    booleans count as 1 or 0, so every row that names a cluster contributes to
    that cluster's count and averages. Output is sorted by cluster id, numeric
    ids by value.
    """

    groups: dict[ClusterId, dict[str, Any]] = {}
    skipped = 0

    for row in rows:
        cluster = coerce_cluster_id(row.get(CLUSTER_FIELD))
        if cluster is None:
            skipped += 1
            continue

        group = groups.get(cluster)
        if group is None:
            group = {
                "cluster": cluster,
                "videos": [],
                "values": {metric: [] for metric in METRIC_FIELDS},
            }
            groups[cluster] = group

        group["videos"].append(row)
        for metric, column in METRIC_FIELDS.items():
            group["values"][metric].append(_metric_value(row.get(column)))

    if skipped:
        logger.warning("Skipped %d row(s) without a '%s' value.", skipped, CLUSTER_FIELD)

    stats = [_summarize_group(group) for group in groups.values()]
    stats.sort(key=lambda item: cluster_sort_key(item.cluster))
    logger.debug("Aggregated %d cluster(s) from %d row(s).", len(stats), sum(s.count for s in stats))
    return stats


def _summarize_group(group: dict[str, Any]) -> ClusterStats:
    summary: dict[str, Any] = {}
    for metric, values in group["values"].items():
        array = np.asarray(values, dtype=float)
        summary[f"avg_{metric}"] = float(np.mean(array))
        if metric in RANGED_METRICS:
            summary[f"min_{metric}"] = float(np.min(array))
            summary[f"max_{metric}"] = float(np.max(array))

    return ClusterStats(
        cluster=group["cluster"],
        count=len(group["videos"]),
        videos=tuple(group["videos"]),
        **summary,
    )


def _metric_value(raw_value: Any) -> float:
    if not isinstance(raw_value, int | float):
        return 0.0
    try:
        value = float(raw_value)
    except OverflowError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value
