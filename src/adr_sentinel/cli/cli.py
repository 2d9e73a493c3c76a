"""Command-line interface for ADR Sentinel."""

import asyncio
import json
import logging
from pathlib import Path

import click

from adr_sentinel.config import get_settings
from adr_sentinel.data_sources.record_store import InMemoryRecordStore
from adr_sentinel.exceptions import MatchingError
from adr_sentinel.models.model_matching import MatchOptions
from adr_sentinel.models.model_report import ReportSummary
from adr_sentinel.services.matching_service import MatchingService

data_option = click.option(
    "--data",
    "data_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON file shaped like {"medicines": [...], "reports": [...]}',
)


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _run(data_path: Path, action):
    """Build a MatchingService over data_path and run action(service)."""

    async def runner():
        store = InMemoryRecordStore.from_json_file(data_path)
        async with MatchingService.from_settings(store) as service:
            return await action(service)

    try:
        return asyncio.run(runner())
    except MatchingError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="adr-sentinel")
@click.option("--log-level", default=None, help="Override ADR_LOG_LEVEL")
def main(log_level: str | None):
    """ADR Sentinel: medicine matching and duplicate report detection."""
    logging.basicConfig(
        level=(log_level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@main.command()
@click.argument("query")
@data_option
@click.option(
    "-n", "--max-results", type=int, default=None, help="Override ADR_MATCH_MAX_RESULTS"
)
@click.option("--min-score", type=float, default=None, help="Override ADR_MATCH_MIN_SCORE")
@click.option("--no-exact", is_flag=True, help="Disable the exact-match short-circuit")
def search(
    query: str,
    data_path: Path,
    max_results: int | None,
    min_score: float | None,
    no_exact: bool,
):
    """Search the medicine catalog for QUERY."""
    overrides = {"include_exact": not no_exact}
    if max_results is not None:
        overrides["max_results"] = max_results
    if min_score is not None:
        overrides["min_score"] = min_score

    def action(service: MatchingService):
        options = MatchOptions(**{**service.default_options.model_dump(), **overrides})
        return service.search_medicines(query, options)

    results = _run(data_path, action)
    _echo_json(
        [
            {
                "id": r.candidate_id,
                "name": r.candidate_name,
                "generic_name": r.generic_name,
                "score": round(r.combined_score, 4),
                "match_type": r.match_type.value,
                "highlighted": r.highlighted_match,
            }
            for r in results
        ]
    )


@main.command()
@click.argument("partial_name")
@data_option
@click.option("-n", "--limit", type=int, default=None, help="Override ADR_SUGGESTION_LIMIT")
def suggest(partial_name: str, data_path: Path, limit: int | None):
    """Autocomplete suggestions for PARTIAL_NAME."""
    suggestions = _run(data_path, lambda s: s.get_suggestions(partial_name, limit))
    _echo_json([s.model_dump(mode="json") for s in suggestions])


@main.command()
@click.argument("report_id")
@data_option
def duplicates(report_id: str, data_path: Path):
    """Find potential duplicates of an existing report."""
    analysis = _run(data_path, lambda s: s.analyze_report(report_id))
    _echo_json(analysis.model_dump(mode="json"))


@main.command("check-draft")
@click.argument("draft_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@data_option
def check_draft(draft_path: Path, data_path: Path):
    """Check a draft report (JSON file) for duplicates before submission."""
    draft = ReportSummary.model_validate_json(draft_path.read_text())
    result = _run(data_path, lambda s: s.check_duplicates_before_submission(draft))
    _echo_json(result.model_dump(mode="json"))


@main.command()
@click.argument("report_ids", nargs=-1, required=True)
@data_option
@click.option("--delay", default=None, type=float, help="Seconds to wait between reports")
def batch(report_ids: tuple[str, ...], data_path: Path, delay: float | None):
    """Run duplicate analysis over several reports."""
    summary = _run(data_path, lambda s: s.analyze_batch(list(report_ids), delay))
    _echo_json(summary.model_dump(mode="json", exclude={"results"}))


@main.command("index-stats")
@data_option
def index_stats(data_path: Path):
    """Build the search index and print its statistics."""

    async def action(service: MatchingService):
        await service.force_refresh_index()
        return service.index_stats()

    stats = _run(data_path, action)
    _echo_json(stats.model_dump(mode="json"))


if __name__ == "__main__":
    main()
