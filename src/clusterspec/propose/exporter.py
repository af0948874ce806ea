from __future__ import annotations

import csv
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from clusterspec.models import ClusterId, ClusterOverview, GenerationSpec, cluster_key, cluster_sort_key
from clusterspec.propose.formatting import format_fixed, round_half_up

DEFAULT_SPECS_FILENAME = "generation_specs.json"
DEFAULT_OVERVIEW_FILENAME = "cluster_overview.csv"


def serialize_generation_specs(specs: Mapping[ClusterId, GenerationSpec], indent: int = 2) -> str:
    """Render the generation spec store as one JSON object keyed by cluster id text."""

    payload = {
        cluster_key(cluster): specs[cluster].to_dict()
        for cluster in sorted(specs, key=cluster_sort_key)
    }
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def export_generation_specs(
    specs: Mapping[ClusterId, GenerationSpec],
    output_dir: str | Path,
    *,
    filename: str = DEFAULT_SPECS_FILENAME,
    indent: int = 2,
) -> Path:
    resolved_output_dir = Path(output_dir)
    resolved_output_dir.mkdir(parents=True, exist_ok=True)

    path = resolved_output_dir / filename
    path.write_text(serialize_generation_specs(specs, indent=indent), encoding="utf-8")
    return path


def export_final_outputs(
    specs: Mapping[ClusterId, GenerationSpec],
    overviews: Sequence[ClusterOverview],
    output_dir: str | Path,
    *,
    filename: str = DEFAULT_SPECS_FILENAME,
    indent: int = 2,
    include_overview_csv: bool = True,
) -> dict[str, Path]:
    """Write the generation spec export and, optionally, a per-cluster overview CSV for review."""

    exported = {
        "specs": export_generation_specs(specs, output_dir, filename=filename, indent=indent),
    }
    if include_overview_csv:
        overview_path = Path(output_dir) / DEFAULT_OVERVIEW_FILENAME
        _write_overview_csv(overviews, overview_path)
        exported["overview"] = overview_path

    return exported


def load_generation_specs(path: str | Path) -> dict[str, dict[str, Any]]:
    """Load an exported spec document for downstream review tooling."""

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Generation spec export must be a JSON object.")

    for key, spec in payload.items():
        if not isinstance(spec, dict):
            raise ValueError(f"Spec for cluster {key} must be an object.")
        if "generation_approach" not in spec:
            raise ValueError(f"Spec for cluster {key} has no generation_approach.")

    return payload


def summarize_generation_specs(specs: Mapping[str, Mapping[str, Any]]) -> list[dict[str, Any]]:
    summary: list[dict[str, Any]] = []
    for key, spec in specs.items():
        tokens = spec.get("trend_tokens", {})
        constraints = spec.get("constraints", {})
        summary.append(
            {
                "cluster": key,
                "approach": spec.get("generation_approach"),
                "sample_count": constraints.get("sample_count"),
                "variation_strategy": constraints.get("variation_strategy"),
                "trend_tokens": list(tokens.get("tokens", [])),
            }
        )
    return summary


def _write_overview_csv(overviews: Sequence[ClusterOverview], path: Path) -> None:
    fields = [
        "cluster",
        "count",
        "characteristics",
        "suggested_approach",
        "confidence",
        "reason",
        "avg_motion",
        "motion_range",
        "avg_cut_rate",
        "cut_rate_range",
        "avg_audio_rms_mean",
        "avg_audio_rms_std",
        "avg_visual_density",
        "visual_density_range",
    ]

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fields)
        writer.writeheader()
        for overview in overviews:
            stats = overview.stats
            writer.writerow(
                {
                    "cluster": cluster_key(overview.cluster),
                    "count": overview.count,
                    "characteristics": "|".join(overview.characteristics),
                    "suggested_approach": overview.suggestion.approach,
                    "confidence": overview.suggestion.confidence,
                    "reason": overview.suggestion.reason,
                    "avg_motion": format_fixed(stats.avg_motion, 2),
                    "motion_range": f"{format_fixed(stats.min_motion, 2)} - {format_fixed(stats.max_motion, 2)}",
                    "avg_cut_rate": format_fixed(stats.avg_cut_rate, 1),
                    "cut_rate_range": f"{round_half_up(stats.min_cut_rate)} - {round_half_up(stats.max_cut_rate)}",
                    "avg_audio_rms_mean": format_fixed(stats.avg_audio_rms_mean, 3),
                    "avg_audio_rms_std": format_fixed(stats.avg_audio_rms_std, 3),
                    "avg_visual_density": format_fixed(stats.avg_visual_density, 2),
                    "visual_density_range": (
                        f"{format_fixed(stats.min_visual_density, 2)} - {format_fixed(stats.max_visual_density, 2)}"
                    ),
                }
            )
