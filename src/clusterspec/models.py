from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Literal

Approach = Literal["text-driven", "image-conditioned", "motion-focused"]
Confidence = Literal["high", "medium", "low"]
ClusterId = int | float | str

APPROACHES: tuple[Approach, ...] = ("text-driven", "image-conditioned", "motion-focused")

VideoRecord = Mapping[str, Any]


@dataclass(slots=True)
class ClusterStats:
    """Descriptive statistics for all videos sharing one cluster id."""

    cluster: ClusterId
    count: int
    avg_motion: float
    min_motion: float
    max_motion: float
    avg_cut_rate: float
    min_cut_rate: float
    max_cut_rate: float
    avg_audio_rms_mean: float
    avg_audio_rms_std: float
    avg_visual_density: float
    min_visual_density: float
    max_visual_density: float
    videos: tuple[VideoRecord, ...] = ()


@dataclass(slots=True, frozen=True)
class RadarPoint:
    """One metric of a cluster, min-max normalized to 0-100 across clusters."""

    metric: str
    value: float


@dataclass(slots=True, frozen=True)
class ApproachSuggestion:
    """Explainable output of the approach rule cascade."""

    approach: Approach
    confidence: Confidence
    reason: str


@dataclass(slots=True)
class ClusterOverview:
    cluster: ClusterId
    count: int
    characteristics: list[str]
    radar: list[RadarPoint]
    suggestion: ApproachSuggestion
    stats: ClusterStats


@dataclass(slots=True)
class VisualStyle:
    visual_complexity: str
    detail_level: str
    consistency: str = "within_cluster_variance"


@dataclass(slots=True)
class MotionProfile:
    camera_movement: str
    motion_intensity: int
    motion_range: str
    pacing: str
    cuts_per_minute: int
    cut_rate_range: str


@dataclass(slots=True)
class AudioProfile:
    volume_level: str
    dynamic_range: str
    audio_rms_mean: str
    audio_rms_std: str


@dataclass(slots=True)
class PromptComponents:
    visual_style: VisualStyle
    motion_profile: MotionProfile
    audio_profile: AudioProfile


@dataclass(slots=True)
class TrendTokenBlock:
    enabled: bool
    tokens: list[str]
    usage_note: str
    application_strategy: str


@dataclass(slots=True)
class SpecConstraints:
    sample_count: int
    variation_strategy: str


@dataclass(slots=True)
class GenerationHints:
    note: str


@dataclass(slots=True)
class GenerationSpec:
    """Stable export schema describing how to generate content for a cluster."""

    cluster_id: ClusterId
    generation_approach: Approach
    base_prompt_components: PromptComponents
    trend_tokens: TrendTokenBlock
    constraints: SpecConstraints
    generation_hints: GenerationHints

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def cluster_sort_key(cluster: ClusterId) -> tuple[int, float, str]:
    """Order numeric cluster ids by value, then any non-numeric ids by text."""

    if isinstance(cluster, int | float) and not isinstance(cluster, bool):
        return (0, float(cluster), "")
    return (1, 0.0, str(cluster))


def cluster_key(cluster: ClusterId) -> str:
    """String form used for export keys and CLI arguments."""

    if isinstance(cluster, float) and cluster.is_integer():
        return str(int(cluster))
    return str(cluster)
