from __future__ import annotations

from clusterspec.features.cluster_stats import aggregate_clusters
from clusterspec.pipeline import build_cluster_overviews, overview_payload


def _rows() -> list[dict[str, object]]:
    return [
        {"cluster": 0, "motion_mean": 0.1, "cut_rate_per_min": 10, "visual_density": 0.9, "audio_rms_mean": 0.1},
        {"cluster": 0, "motion_mean": 0.15, "cut_rate_per_min": 15, "visual_density": 0.8, "audio_rms_mean": 0.1},
        {"cluster": 1, "motion_mean": 0.9, "cut_rate_per_min": 140, "visual_density": 0.2, "audio_rms_mean": 0.6},
    ]


def test_build_cluster_overviews_end_to_end() -> None:
    overviews = build_cluster_overviews(aggregate_clusters(_rows()))

    assert [overview.cluster for overview in overviews] == [0, 1]
    assert overviews[0].count == 2
    assert overviews[0].characteristics == ["Low Motion", "Slow Cuts", "Visually Dense", "Quiet Audio"]
    assert overviews[0].suggestion.approach == "image-conditioned"
    assert overviews[1].suggestion.approach == "motion-focused"
    assert [point.value for point in overviews[1].radar][:2] == [100, 100]


def test_build_cluster_overviews_empty() -> None:
    assert build_cluster_overviews([]) == []


def test_overview_payload_is_json_ready_and_omits_videos() -> None:
    [overview] = build_cluster_overviews(aggregate_clusters(_rows()[2:]))

    payload = overview_payload(overview)

    assert payload["cluster"] == 1
    assert payload["suggestion"] == {
        "approach": "text-driven",
        "confidence": "low",
        "reason": "Balanced metrics - best suited for conceptual/thematic generation",
    }
    assert payload["radar"] == {
        "Motion": 50,
        "Cut Rate": 50,
        "Visual Density": 50,
        "Audio Volume": 50,
        "Audio Variance": 50,
    }
    assert "videos" not in payload["stats"]
    assert payload["stats"]["max_cut_rate"] == 140
