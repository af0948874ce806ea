from __future__ import annotations

import json
import logging
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, TypeVar

import typer

from clusterspec.config import Settings, load_settings
from clusterspec.ingest.tables import coerce_cluster_id, load_record_table
from clusterspec.logging_config import configure_logging
from clusterspec.models import ClusterId, cluster_key
from clusterspec.pipeline import overview_payload
from clusterspec.propose.exporter import export_final_outputs, load_generation_specs, summarize_generation_specs
from clusterspec.scoring.approach import normalize_approach
from clusterspec.session import ClusterSession

app = typer.Typer(help="Video cluster analysis and generation spec builder.")
config_app = typer.Typer(help="Configuration commands.")
clusters_app = typer.Typer(help="Cluster inspection commands.")
specs_app = typer.Typer(help="Generation spec review commands.")

app.add_typer(config_app, name="config")
app.add_typer(clusters_app, name="clusters")
app.add_typer(specs_app, name="specs")

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_OPTION_HELP = "Path to YAML configuration file (defaults to configs/default.yaml when present)."


def _run_with_progress(step_index: int, total_steps: int, label: str, work: Callable[[], T]) -> T:
    typer.echo(f"[{step_index}/{total_steps}] {label}...", err=True)
    started_at = perf_counter()
    try:
        result = work()
    except Exception:
        elapsed = perf_counter() - started_at
        typer.echo(f"[{step_index}/{total_steps}] {label} failed after {elapsed:.1f}s", err=True)
        raise
    elapsed = perf_counter() - started_at
    typer.echo(f"[{step_index}/{total_steps}] {label} done in {elapsed:.1f}s", err=True)
    return result


def _bootstrap(config_path: Path | None) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging)
    logger.debug("Loaded runtime settings from %s", config_path or "defaults")
    return settings


def _parse_cluster_option(raw: str, option_name: str) -> tuple[ClusterId, str]:
    cluster_text, separator, value = raw.partition("=")
    if not separator or not cluster_text.strip():
        raise typer.BadParameter(f"Expected CLUSTER=VALUE, got '{raw}'.", param_hint=option_name)
    return coerce_cluster_id(cluster_text), value


def _parse_approach_options(raw_values: list[str]) -> dict[ClusterId, str]:
    approaches: dict[ClusterId, str] = {}
    for raw in raw_values:
        cluster, value = _parse_cluster_option(raw, "--approach")
        try:
            approaches[cluster] = normalize_approach(value)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--approach") from exc
    return approaches


def _parse_token_options(raw_values: list[str]) -> list[tuple[ClusterId, str]]:
    return [_parse_cluster_option(raw, "--token") for raw in raw_values]


@config_app.command("show")
def show_config(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="CLUSTER_SPECS_CONFIG",
        help=CONFIG_OPTION_HELP,
    )
) -> None:
    """Print resolved runtime configuration."""

    settings = _bootstrap(config_path)
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@clusters_app.command("analyze")
def analyze_clusters(
    interpretation_path: Path = typer.Argument(..., help="Path to interpretation.csv (per-video metrics)."),
    clusters_path: Path | None = typer.Option(None, "--clusters", help="Optional cluster_results.csv (row count only)."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="CLUSTER_SPECS_CONFIG",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Print per-cluster statistics, tags, radar values and suggested approach."""

    settings = _bootstrap(config_path)
    session = ClusterSession()

    if not session.load_interpretation_file(
        interpretation_path,
        delimiter=settings.ingest.delimiter,
        encoding=settings.ingest.encoding,
    ):
        typer.echo(f"Error: could not load interpretation table {interpretation_path}", err=True)
        raise typer.Exit(code=1)

    if clusters_path is not None:
        session.load_cluster_assignment_file(
            clusters_path,
            delimiter=settings.ingest.delimiter,
            encoding=settings.ingest.encoding,
        )

    typer.echo(
        json.dumps(
            {
                "video_count": session.video_count,
                "cluster_count": len(session.cluster_stats),
                "cluster_assignment_count": session.cluster_assignment_count,
                "clusters": [overview_payload(overview) for overview in session.overviews()],
            },
            indent=2,
            ensure_ascii=False,
        )
    )


@specs_app.command("review")
def review_specs(
    specs_path: Path = typer.Argument(..., help="Path to an exported generation_specs.json."),
) -> None:
    """Summarize an existing generation spec export."""

    try:
        specs = load_generation_specs(specs_path)
    except (OSError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(json.dumps(summarize_generation_specs(specs), indent=2, ensure_ascii=False))


@app.command("run")
def run_pipeline(
    interpretation_path: Path = typer.Argument(..., help="Path to interpretation.csv (per-video metrics)."),
    clusters_path: Path | None = typer.Option(None, "--clusters", help="Optional cluster_results.csv (row count only)."),
    approach: list[str] | None = typer.Option(
        None,
        "--approach",
        "-a",
        help="Approach for a cluster as CLUSTER=APPROACH (text-driven, image-conditioned, motion-focused). Repeatable.",
    ),
    token: list[str] | None = typer.Option(
        None,
        "--token",
        "-t",
        help="Trend token for a cluster as CLUSTER=TOKEN (max 3 per cluster, duplicates ignored). Repeatable.",
    ),
    use_suggested: bool = typer.Option(
        False,
        "--use-suggested/--no-use-suggested",
        help="Use the suggested approach for clusters without an explicit --approach.",
    ),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Directory for JSON/CSV outputs."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar="CLUSTER_SPECS_CONFIG",
        help=CONFIG_OPTION_HELP,
    ),
) -> None:
    """Aggregate clusters, build generation specs for chosen clusters and export them."""

    settings = _bootstrap(config_path)
    approaches = _parse_approach_options(approach or [])
    tokens = _parse_token_options(token or [])
    resolved_output_dir = output_dir or settings.export.output_dir

    total_steps = 5
    session = ClusterSession()

    try:
        table = _run_with_progress(
            1,
            total_steps,
            "Load interpretation table",
            lambda: load_record_table(
                interpretation_path,
                delimiter=settings.ingest.delimiter,
                encoding=settings.ingest.encoding,
            ),
        )
        if clusters_path is not None:
            session.load_cluster_assignment_file(
                clusters_path,
                delimiter=settings.ingest.delimiter,
                encoding=settings.ingest.encoding,
            )

        _run_with_progress(2, total_steps, "Aggregate clusters", lambda: session.load_interpretation(table))
        overviews = _run_with_progress(3, total_steps, "Classify clusters", session.overviews)

        def _build_specs() -> list[ClusterId]:
            for cluster, chosen in approaches.items():
                if session.stats_for(cluster) is None:
                    logger.warning("Ignoring approach for unknown cluster %s.", cluster)
                    continue
                session.choose_approach(cluster, chosen)

            for cluster, value in tokens:
                if session.stats_for(cluster) is None:
                    logger.warning("Ignoring trend token for unknown cluster %s.", cluster)
                    continue
                session.add_trend_token(cluster, value)

            if use_suggested:
                for overview in overviews:
                    if overview.cluster not in session.selected_approaches:
                        session.choose_approach(overview.cluster, overview.suggestion.approach)

            built: list[ClusterId] = []
            for cluster in session.cluster_ids():
                if session.generate_spec(cluster) is not None:
                    built.append(cluster)
            return built

        built_clusters = _run_with_progress(4, total_steps, "Build generation specs", _build_specs)

        exported = _run_with_progress(
            5,
            total_steps,
            "Export outputs",
            lambda: export_final_outputs(
                session.generation_specs,
                overviews,
                resolved_output_dir,
                filename=settings.export.filename,
                indent=settings.export.indent,
                include_overview_csv=settings.export.write_overview_csv,
            ),
        )
    except (OSError, ValueError) as exc:
        logger.error("Pipeline failed: %s", exc)
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    skipped = [cluster_key(cluster) for cluster in session.cluster_ids() if cluster not in built_clusters]
    result: dict[str, Any] = {
        "status": "ok",
        "interpretation_path": str(interpretation_path),
        "video_count": session.video_count,
        "cluster_count": len(session.cluster_stats),
        "cluster_assignment_count": session.cluster_assignment_count,
        "generated_clusters": [cluster_key(cluster) for cluster in built_clusters],
        "skipped_clusters": skipped,
        "outputs": {key: str(path) for key, path in exported.items()},
    }
    typer.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    app()
