from __future__ import annotations

from collections.abc import Sequence

from clusterspec.models import APPROACHES, Approach, ApproachSuggestion, ClusterStats, RadarPoint
from clusterspec.scoring.radar import radar_points


def suggest_approach(points: Sequence[RadarPoint]) -> ApproachSuggestion:
    """Pick a generation approach from normalized radar values.

    Rules are checked in order and the first match wins, so combined
    motion + pacing outranks visual density even when both are high.
    Metrics absent from ``points`` read as 0.
    """

    values = {point.metric: point.value for point in points}
    motion = values.get("Motion", 0.0)
    cut_rate = values.get("Cut Rate", 0.0)
    visual_density = values.get("Visual Density", 0.0)
    audio_volume = values.get("Audio Volume", 0.0)
    audio_variance = values.get("Audio Variance", 0.0)

    if motion > 60 and cut_rate > 60:
        return ApproachSuggestion(
            approach="motion-focused",
            confidence="high",
            reason="High motion + fast cuts = movement-driven content",
        )

    if visual_density > 70:
        return ApproachSuggestion(
            approach="image-conditioned",
            confidence="high",
            reason="Strong visual composition and density",
        )

    if visual_density > 50 and motion < 40:
        return ApproachSuggestion(
            approach="image-conditioned",
            confidence="medium",
            reason="Visual-focused with minimal movement",
        )

    # movement without fast cuts
    if motion > 70:
        return ApproachSuggestion(
            approach="motion-focused",
            confidence="medium",
            reason="Significant camera/subject movement",
        )

    if audio_variance > 70 or audio_volume > 70:
        return ApproachSuggestion(
            approach="text-driven",
            confidence="medium",
            reason="Distinctive audio characteristics suggest narrative/thematic content",
        )

    return ApproachSuggestion(
        approach="text-driven",
        confidence="low",
        reason="Balanced metrics - best suited for conceptual/thematic generation",
    )


def suggest_for_cluster(all_stats: Sequence[ClusterStats], stats: ClusterStats) -> ApproachSuggestion:
    """Normalize ``stats`` against ``all_stats`` and run the rule cascade."""

    return suggest_approach(radar_points(all_stats, stats))


def normalize_approach(approach: str) -> Approach:
    normalized = approach.lower().strip()
    if normalized not in APPROACHES:
        msg = (
            f"Unsupported generation approach '{approach}'. "
            f"Expected one of: {', '.join(APPROACHES)}."
        )
        raise ValueError(msg)
    return normalized  # type: ignore[return-value]
