from __future__ import annotations

from collections.abc import Sequence

from clusterspec.models import (
    Approach,
    AudioProfile,
    ClusterStats,
    GenerationHints,
    GenerationSpec,
    MotionProfile,
    PromptComponents,
    SpecConstraints,
    TrendTokenBlock,
    VisualStyle,
)
from clusterspec.propose.formatting import format_fixed, round_half_up
from clusterspec.scoring.approach import normalize_approach

MAX_TREND_TOKENS = 3

TREND_TOKEN_USAGE_NOTE = (
    "Optional 1-3 word modifiers appended to base prompt to reflect current trends within cluster"
)
TREND_TOKEN_APPLICATION_STRATEGY = "Randomly select 0-2 tokens per generation for variance"

VARIATION_STRATEGIES: dict[str, str] = {
    "image-conditioned": "vary_seed_image",
    "motion-focused": "vary_motion_parameters",
    "text-driven": "vary_text_prompt",
}

GENERATION_NOTES: dict[str, str] = {
    "image-conditioned": (
        "Use representative frames from cluster as seed images. Apply trend tokens to text conditioning."
    ),
    "motion-focused": (
        "Emphasize camera movement and subject motion. Trend tokens can guide motion style variations."
    ),
    "text-driven": (
        "Focus on thematic and conceptual elements. Trend tokens add current flavor to base themes."
    ),
}


def add_trend_token(tokens: Sequence[str], token: str) -> tuple[str, ...]:
    """Append a trimmed token; blank, duplicate or over-limit tokens are ignored."""

    current = tuple(tokens)
    cleaned = token.strip()
    if not cleaned:
        return current
    if len(current) >= MAX_TREND_TOKENS:
        return current
    if cleaned in current:
        return current
    return (*current, cleaned)


def remove_trend_token(tokens: Sequence[str], index: int) -> tuple[str, ...]:
    current = tuple(tokens)
    if not 0 <= index < len(current):
        return current
    return current[:index] + current[index + 1 :]


def build_generation_spec(
    stats: ClusterStats,
    approach: str,
    tokens: Sequence[str] = (),
) -> GenerationSpec:
    """Derive a generation spec from cluster statistics by fixed thresholds.

    The result depends only on the arguments: building twice from the same
    inputs serializes to identical JSON.
    """

    resolved_approach: Approach = normalize_approach(approach)
    token_list = list(tokens)

    return GenerationSpec(
        cluster_id=stats.cluster,
        generation_approach=resolved_approach,
        base_prompt_components=PromptComponents(
            visual_style=_visual_style(stats),
            motion_profile=_motion_profile(stats),
            audio_profile=_audio_profile(stats),
        ),
        trend_tokens=TrendTokenBlock(
            enabled=len(token_list) > 0,
            tokens=token_list,
            usage_note=TREND_TOKEN_USAGE_NOTE,
            application_strategy=TREND_TOKEN_APPLICATION_STRATEGY,
        ),
        constraints=SpecConstraints(
            sample_count=stats.count,
            variation_strategy=VARIATION_STRATEGIES[resolved_approach],
        ),
        generation_hints=GenerationHints(note=GENERATION_NOTES[resolved_approach]),
    )


def _visual_style(stats: ClusterStats) -> VisualStyle:
    density = stats.avg_visual_density
    if density > 0.6:
        complexity = "high"
    elif density > 0.3:
        complexity = "medium"
    else:
        complexity = "low"

    return VisualStyle(
        visual_complexity=complexity,
        detail_level="detailed" if density > 0.5 else "simplified",
    )


def _motion_profile(stats: ClusterStats) -> MotionProfile:
    if stats.avg_motion > 0.6:
        camera_movement = "dynamic"
    elif stats.avg_motion > 0.3:
        camera_movement = "moderate"
    else:
        camera_movement = "static"

    if stats.avg_cut_rate > 120:
        pacing = "fast"
    elif stats.avg_cut_rate > 60:
        pacing = "medium"
    else:
        pacing = "slow"

    return MotionProfile(
        camera_movement=camera_movement,
        motion_intensity=round_half_up(stats.avg_motion * 10),
        motion_range=f"{format_fixed(stats.min_motion, 2)} - {format_fixed(stats.max_motion, 2)}",
        pacing=pacing,
        cuts_per_minute=round_half_up(stats.avg_cut_rate),
        cut_rate_range=f"{round_half_up(stats.min_cut_rate)} - {round_half_up(stats.max_cut_rate)}",
    )


def _audio_profile(stats: ClusterStats) -> AudioProfile:
    return AudioProfile(
        volume_level=_level(stats.avg_audio_rms_mean, high=0.5, medium=0.25),
        dynamic_range=_level(stats.avg_audio_rms_std, high=0.3, medium=0.15),
        audio_rms_mean=format_fixed(stats.avg_audio_rms_mean, 3),
        audio_rms_std=format_fixed(stats.avg_audio_rms_std, 3),
    )


def _level(value: float, *, high: float, medium: float) -> str:
    if value > high:
        return "high"
    if value > medium:
        return "medium"
    return "low"
