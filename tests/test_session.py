from __future__ import annotations

from pathlib import Path

import pytest

from clusterspec.ingest.tables import parse_records
from clusterspec.session import ClusterSession

INTERPRETATION_CSV = """video_id,cluster,motion_mean,cut_rate_per_min,audio_rms_mean,audio_rms_std,visual_density
v1,1,0.1,20,0.1,0.05,0.8
v2,1,0.2,30,0.1,0.05,0.9
v3,3,0.8,150,0.6,0.4,0.2
v4,3,0.9,160,0.7,0.3,0.3
v5,2,0.4,70,0.3,0.2,0.5
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def session(tmp_path: Path) -> ClusterSession:
    loaded = ClusterSession()
    assert loaded.load_interpretation_file(_write(tmp_path, "interpretation.csv", INTERPRETATION_CSV))
    return loaded


def test_load_interpretation_file_aggregates_clusters(session: ClusterSession) -> None:
    assert session.cluster_ids() == [1, 2, 3]
    assert session.video_count == 5
    assert session.stats_for(3).count == 2
    assert session.stats_for(99) is None


def test_suggestions_are_recomputed_from_current_clusters(session: ClusterSession) -> None:
    suggestions = session.suggestions()

    assert list(suggestions) == [1, 2, 3]
    assert suggestions[3].approach == "motion-focused"
    assert suggestions[3].confidence == "high"
    assert suggestions[1].approach == "image-conditioned"
    assert session.suggestion(3) == suggestions[3]
    assert session.suggestion(42) is None


def test_empty_session_returns_empty_results() -> None:
    empty = ClusterSession()

    assert empty.suggestions() == {}
    assert empty.overviews() == []
    assert empty.radar(1) == []


def test_generate_spec_is_inert_without_approach(session: ClusterSession) -> None:
    assert session.generate_spec(1) is None
    assert session.generation_specs == {}
    assert session.selected_cluster is None


def test_generate_spec_for_unknown_cluster_is_inert(session: ClusterSession) -> None:
    session.choose_approach(7, "text-driven")

    assert session.generate_spec(7) is None
    assert session.generation_specs == {}


def test_generate_spec_stores_and_focuses_cluster(session: ClusterSession) -> None:
    session.choose_approach(3, "motion-focused")
    session.add_trend_token(3, "fast zoom")

    spec = session.generate_spec(3)

    assert spec is not None
    assert session.generation_specs == {3: spec}
    assert session.selected_cluster == 3
    assert spec.trend_tokens.tokens == ["fast zoom"]
    assert spec.constraints.sample_count == 2


def test_regenerating_replaces_prior_spec(session: ClusterSession) -> None:
    session.choose_approach(1, "text-driven")
    session.generate_spec(1)
    session.choose_approach(1, "image-conditioned")

    spec = session.generate_spec(1)

    assert session.generation_specs[1] is spec
    assert spec.generation_approach == "image-conditioned"


def test_mutations_replace_mappings(session: ClusterSession) -> None:
    session.choose_approach(2, "text-driven")
    approaches_before = session.selected_approaches
    specs_before = session.generation_specs
    tokens_before = session.trend_tokens

    session.choose_approach(1, "image-conditioned")
    session.add_trend_token(1, "minimalist")
    session.generate_spec(2)

    assert approaches_before == {2: "text-driven"}
    assert tokens_before == {}
    assert specs_before == {}
    assert session.selected_approaches == {2: "text-driven", 1: "image-conditioned"}


def test_trend_tokens_respect_limits(session: ClusterSession) -> None:
    for token in ["a", "b", "a", " ", "c", "d"]:
        session.add_trend_token(2, token)

    assert session.tokens_for(2) == ("a", "b", "c")

    session.remove_trend_token(2, 0)
    assert session.tokens_for(2) == ("b", "c")


def test_choose_approach_rejects_unknown_value(session: ClusterSession) -> None:
    with pytest.raises(ValueError):
        session.choose_approach(1, "audio-first")

    assert session.selected_approaches == {}


def test_reload_keeps_previously_built_specs(session: ClusterSession) -> None:
    session.choose_approach(3, "motion-focused")
    stale = session.generate_spec(3)

    session.load_interpretation(parse_records(["cluster,motion_mean\n", "5,0.2\n"]))

    assert session.cluster_ids() == [5]
    assert session.generation_specs == {3: stale}
    assert session.selected_approaches == {3: "motion-focused"}


def test_parse_failure_leaves_state_untouched(session: ClusterSession, tmp_path: Path) -> None:
    session.choose_approach(1, "text-driven")
    session.generate_spec(1)
    stats_before = session.cluster_stats
    specs_before = session.generation_specs

    missing_column = _write(tmp_path, "bad.csv", "video_id,motion_mean\nv1,0.5\n")

    assert session.load_interpretation_file(tmp_path / "missing.csv") is False
    assert session.load_interpretation_file(missing_column) is False
    assert session.cluster_stats is stats_before
    assert session.generation_specs is specs_before


def test_parse_failure_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("ERROR", logger="clusterspec.session"):
        assert ClusterSession().load_interpretation_file(tmp_path / "missing.csv") is False

    assert "Error parsing interpretation table" in caplog.text


def test_cluster_assignment_table_only_counts_rows(session: ClusterSession, tmp_path: Path) -> None:
    path = _write(tmp_path, "cluster_results.csv", "video_id,cluster\nv1,1\nv2,3\nv3,3\n")

    assert session.load_cluster_assignment_file(path) is True
    assert session.cluster_assignment_count == 3
    assert session.cluster_ids() == [1, 2, 3]
    assert session.load_cluster_assignment_file(tmp_path / "nope.csv") is False
    assert session.cluster_assignment_count == 3
