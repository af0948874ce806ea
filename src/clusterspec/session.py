from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from clusterspec.features.cluster_stats import CLUSTER_FIELD, aggregate_clusters
from clusterspec.ingest.tables import RecordTable, load_record_table
from clusterspec.models import (
    Approach,
    ApproachSuggestion,
    ClusterId,
    ClusterOverview,
    ClusterStats,
    GenerationSpec,
    RadarPoint,
)
from clusterspec.pipeline import build_cluster_overviews
from clusterspec.propose import spec_builder
from clusterspec.scoring.approach import normalize_approach, suggest_approach
from clusterspec.scoring.radar import radar_points

logger = logging.getLogger(__name__)


@dataclass
class ClusterSession:
    """State for one analysis session.

    Mappings are never edited in place: each change installs a new dict built
    from the previous one, so a reference taken earlier keeps its contents.
    Reloading the interpretation table replaces ``cluster_stats`` only; specs,
    approach choices and trend tokens recorded for a cluster id survive and
    may now describe stale statistics until rebuilt.
    """

    cluster_stats: list[ClusterStats] = field(default_factory=list)
    video_count: int = 0
    cluster_assignment_count: int | None = None
    selected_approaches: Mapping[ClusterId, Approach] = field(default_factory=dict)
    trend_tokens: Mapping[ClusterId, tuple[str, ...]] = field(default_factory=dict)
    generation_specs: Mapping[ClusterId, GenerationSpec] = field(default_factory=dict)
    selected_cluster: ClusterId | None = None

    def load_interpretation(self, table: RecordTable) -> list[ClusterStats]:
        table.require_fields(CLUSTER_FIELD)
        self.cluster_stats = aggregate_clusters(table.rows)
        self.video_count = len(table)
        logger.info("Loaded %d videos into %d cluster(s).", self.video_count, len(self.cluster_stats))
        return self.cluster_stats

    def load_interpretation_file(
        self,
        path: str | Path,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ) -> bool:
        try:
            table = load_record_table(path, delimiter=delimiter, encoding=encoding)
            self.load_interpretation(table)
        except (OSError, ValueError) as exc:
            logger.error("Error parsing interpretation table %s: %s", path, exc)
            return False
        return True

    def load_cluster_assignment_file(
        self,
        path: str | Path,
        *,
        delimiter: str = ",",
        encoding: str = "utf-8-sig",
    ) -> bool:
        try:
            table = load_record_table(path, delimiter=delimiter, encoding=encoding)
        except (OSError, ValueError) as exc:
            logger.error("Error parsing cluster assignment table %s: %s", path, exc)
            return False
        self.cluster_assignment_count = len(table)
        logger.info("Loaded %d cluster assignments.", self.cluster_assignment_count)
        return True

    def cluster_ids(self) -> list[ClusterId]:
        return [stats.cluster for stats in self.cluster_stats]

    def stats_for(self, cluster: ClusterId) -> ClusterStats | None:
        for stats in self.cluster_stats:
            if stats.cluster == cluster:
                return stats
        return None

    def radar(self, cluster: ClusterId) -> list[RadarPoint]:
        stats = self.stats_for(cluster)
        if stats is None:
            return []
        return radar_points(self.cluster_stats, stats)

    def suggestion(self, cluster: ClusterId) -> ApproachSuggestion | None:
        stats = self.stats_for(cluster)
        if stats is None:
            return None
        return suggest_approach(radar_points(self.cluster_stats, stats))

    def suggestions(self) -> dict[ClusterId, ApproachSuggestion]:
        return {overview.cluster: overview.suggestion for overview in self.overviews()}

    def overviews(self) -> list[ClusterOverview]:
        return build_cluster_overviews(self.cluster_stats)

    def choose_approach(self, cluster: ClusterId, approach: str) -> None:
        self.selected_approaches = {**self.selected_approaches, cluster: normalize_approach(approach)}

    def tokens_for(self, cluster: ClusterId) -> tuple[str, ...]:
        return self.trend_tokens.get(cluster, ())

    def add_trend_token(self, cluster: ClusterId, token: str) -> tuple[str, ...]:
        current = self.tokens_for(cluster)
        updated = spec_builder.add_trend_token(current, token)
        if updated != current:
            self.trend_tokens = {**self.trend_tokens, cluster: updated}
        return updated

    def remove_trend_token(self, cluster: ClusterId, index: int) -> tuple[str, ...]:
        current = self.tokens_for(cluster)
        updated = spec_builder.remove_trend_token(current, index)
        if updated != current:
            self.trend_tokens = {**self.trend_tokens, cluster: updated}
        return updated

    def generate_spec(self, cluster: ClusterId) -> GenerationSpec | None:
        """Build and store the generation spec for ``cluster``; a no-op without an approach."""

        stats = self.stats_for(cluster)
        if stats is None:
            logger.warning("Cluster %s is not loaded; spec not generated.", cluster)
            return None

        approach = self.selected_approaches.get(cluster)
        if approach is None:
            logger.info("No approach chosen for cluster %s; spec not generated.", cluster)
            return None

        spec = spec_builder.build_generation_spec(stats, approach, self.tokens_for(cluster))
        self.generation_specs = {**self.generation_specs, cluster: spec}
        self.selected_cluster = cluster
        return spec
