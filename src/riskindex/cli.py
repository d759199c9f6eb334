"""Command line interface for the Insider Risk Index engine."""

import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from riskindex.config.loader import configure_from_cli
from riskindex.config.settings import LogLevel, Settings, set_settings
from riskindex.config.resolvers import resolve_db_path
from riskindex.domain.exceptions import (
    ConfigurationError,
    RiskIndexError,
    ValidationError,
)
from riskindex.domain.models import AssessmentResult
from riskindex.utils.logging import setup_logging
from riskindex.data.db import connect, as_utc
from riskindex.data.schema import init_schema
from riskindex.data.snapshot_repo import upsert_snapshots
from riskindex.benchmarks.reference import reference_snapshots
from riskindex.benchmarks.refresh import BenchmarkRefreshJob
from riskindex.reporting.summary import render_summary
from riskindex.runners.assessment import AssessmentService, compute_assessment


def _common_options() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--db",
        type=str,
        metavar="PATH",
        help="Record store SQLite DB. If omitted, a per-user default is chosen.",
    )
    common.add_argument(
        "--questionnaire-version",
        type=str,
        metavar="VERSION",
        help="Questionnaire version to score against (default: 2025.1).",
    )

    debug_group = common.add_argument_group("Debug Options")
    debug_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with verbose logging.",
    )
    debug_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and compute without writing to the record store.",
    )
    debug_group.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Also write logs to this file.",
    )
    debug_group.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        type=str.upper,
        help="Level recorded in the log file (default: INFO). The console shows warnings unless --debug.",
    )
    return common


def _answer_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-a",
        "--answers",
        required=True,
        help=(
            "JSON file with answers ('-' for stdin): either {question_id: value}, "
            "a list of answers, or {\"answers\": ..., \"industry\": ..., \"companySize\": ...}."
        ),
    )
    p.add_argument("--industry", help="Industry, e.g. financial-services.")
    p.add_argument("--size", dest="company_size", help="Company size, e.g. 51-250.")
    p.add_argument("--region", help="Region, e.g. north-america.")
    p.add_argument(
        "--missing-answers",
        choices=["exclude", "zero"],
        help="Treatment of unanswered questions in a partially answered pillar.",
    )
    p.add_argument(
        "--precision",
        type=int,
        metavar="N",
        help="Decimal places of the total score (default: 0).",
    )
    p.add_argument("--json", action="store_true", help="Print the result as JSON.")
    _benchmark_options(p)


def _benchmark_options(p: argparse.ArgumentParser) -> None:
    group = p.add_argument_group("Benchmark Options")
    group.add_argument(
        "--freshness-days",
        type=int,
        metavar="N",
        help="Ignore benchmark snapshots older than N days (default: 30).",
    )
    group.add_argument(
        "--benchmark-timeout",
        type=float,
        metavar="SECONDS",
        help="Deadline for all benchmark lookups together (default: 2.0).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the riskindex CLI."""
    parser = argparse.ArgumentParser(
        prog="riskindex",
        description=(
            "Insider Risk Index: score questionnaire answers, classify maturity "
            "and compare against cohort benchmarks."
        ),
    )
    sub = parser.add_subparsers(dest="cmd", required=True)
    common = _common_options()

    score_p = sub.add_parser("score", parents=[common], help="Score answers without storing them")
    _answer_options(score_p)
    score_p.add_argument(
        "--no-benchmarks",
        action="store_true",
        help="Skip the benchmark lookup.",
    )

    submit_p = sub.add_parser("submit", parents=[common], help="Score and store an assessment")
    _answer_options(submit_p)
    submit_p.add_argument("--email", help="Contact email (stored only with --email-opt-in).")
    submit_p.add_argument("--email-opt-in", action="store_true", help="Consent to follow-up email.")
    submit_p.add_argument(
        "--wait-refresh",
        action="store_true",
        help="Wait for the triggered benchmark refresh before exiting.",
    )

    show_p = sub.add_parser("show", parents=[common], help="Show a stored assessment")
    show_p.add_argument("assessment_id", help="Assessment id printed by 'submit'.")
    show_p.add_argument("--json", action="store_true", help="Print the result as JSON.")
    _benchmark_options(show_p)

    seed_p = sub.add_parser(
        "seed-benchmarks", parents=[common],
        help="Load the published research baseline as benchmark snapshots",
    )
    seed_p.add_argument(
        "--period-end",
        type=_parse_datetime,
        metavar="ISO",
        help="Snapshot period end (default: now).",
    )

    refresh_p = sub.add_parser(
        "refresh-benchmarks", parents=[common],
        help="Recompute benchmark snapshots from stored assessments",
    )
    refresh_p.add_argument("--period-end", type=_parse_datetime, metavar="ISO",
                           help="End of the aggregation window (default: now).")
    refresh_p.add_argument("--window-days", type=int, metavar="N",
                           help="Aggregation window length in days (default: 90).")
    refresh_p.add_argument("--min-sample", type=int, metavar="N",
                           help="Minimum assessments per cohort (default: 5).")
    refresh_p.add_argument("--retries", type=int, metavar="N",
                           help="Retry attempts on transient store errors (default: 3).")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the riskindex CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = configure_from_cli(args)
        set_settings(settings)

        _, summary_logger = setup_logging(
            log_file=settings.logging.file_path,
            console=settings.logging.console_output,
            level=settings.logging.level.value,
            console_level="DEBUG" if settings.debug_mode else "WARNING",
            file_format=settings.logging.format_string,
        )
        if settings.debug_mode:
            for section, values in settings.to_dict().items():
                logging.getLogger("riskindex").debug("  %s: %s", section, values)

        handler = _COMMANDS[args.cmd]
        sys.exit(handler(args, settings, summary_logger))

    except ConfigurationError as e:
        logging.error("Configuration error: %s", e.message)
        if getattr(e, "suggestions", None):
            logging.error("Suggestions:")
            for suggestion in e.suggestions:
                logging.error("  - %s", suggestion)
        sys.exit(1)

    except ValidationError as e:
        _print_validation_error(e)
        sys.exit(2)

    except RiskIndexError as e:
        logging.error("%s: %s", e.error_code, e.message)
        sys.exit(1)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(130)


def _cmd_score(args, settings: Settings, summary_logger) -> int:
    answers, org_meta = _load_answers(args)
    outcome = compute_assessment(answers, org_meta, settings=settings)

    if not outcome.ok:
        if isinstance(outcome.error, ValidationError):
            _print_validation_error(outcome.error)
        else:
            print(f"Could not score answers: {outcome.error}", file=sys.stderr)
        return 2

    _print_result(outcome.result, as_json=args.json)
    return 0


def _cmd_submit(args, settings: Settings, summary_logger) -> int:
    answers, org_meta = _load_answers(args)
    with AssessmentService(args.db, settings) as service:
        record = service.submit(
            answers, org_meta,
            email_opt_in=args.email_opt_in,
            contact_email=args.email,
        )
        if args.wait_refresh:
            service.refresher.join()

    if args.json:
        print(json.dumps({"assessment_id": record.assessment_id,
                          "result": record.result.to_dict()}, indent=2))
    else:
        _print_result(record.result, as_json=False)
        summary_logger.info("Assessment id: %s", record.assessment_id)
    return 0


def _cmd_show(args, settings: Settings, summary_logger) -> int:
    with AssessmentService(resolve_db_path(args.db, must_exist=True), settings) as service:
        result = service.get(args.assessment_id)
    _print_result(result, as_json=args.json)
    return 0


def _cmd_seed(args, settings: Settings, summary_logger) -> int:
    db_path = resolve_db_path(args.db)
    snapshots = reference_snapshots(args.period_end)
    if settings.dry_run:
        summary_logger.info("Dry run: %d reference snapshots not written", len(snapshots))
        return 0
    conn = connect(db_path, settings.database.busy_timeout_ms, settings.database.pragma_settings)
    try:
        init_schema(conn)
        n = upsert_snapshots(conn, snapshots)
    finally:
        conn.close()
    summary_logger.info("Seeded %d reference snapshots into %s", n, db_path)
    return 0


def _cmd_refresh(args, settings: Settings, summary_logger) -> int:
    db_path = resolve_db_path(args.db)
    res = BenchmarkRefreshJob(db_path, settings).run(args.period_end)
    summary_logger.info(
        "Refreshed benchmarks: %d assessments, %d snapshots written, %d cohorts below sample size",
        res.assessments_read, res.snapshots_written, len(res.cohorts_skipped),
    )
    return 0


_COMMANDS = {
    "score": _cmd_score,
    "submit": _cmd_submit,
    "show": _cmd_show,
    "seed-benchmarks": _cmd_seed,
    "refresh-benchmarks": _cmd_refresh,
}


def _parse_datetime(value: str) -> datetime:
    try:
        return as_utc(datetime.fromisoformat(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date/time: {value!r}") from None


def _load_answers(args) -> Tuple[Any, Dict[str, Any]]:
    """Read the answers payload and merge org metadata from file and flags."""
    try:
        if args.answers == "-":
            payload = json.load(sys.stdin)
        else:
            with open(args.answers, encoding="utf-8") as fh:
                payload = json.load(fh)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Answers file not found: {args.answers}", config_field="answers"
        ) from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Answers file is not valid JSON: {e}", config_field="answers"
        ) from e

    org_meta: Dict[str, Any] = {}
    answers = payload
    if isinstance(payload, dict) and "answers" in payload:
        answers = payload["answers"]
        org_meta = {
            "industry": payload.get("industry"),
            "company_size": payload.get("companySize", payload.get("company_size")),
            "region": payload.get("region"),
        }

    for key in ("industry", "company_size", "region"):
        if getattr(args, key, None):
            org_meta[key] = getattr(args, key)
    return answers, org_meta


def _print_result(result: AssessmentResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(render_summary(result))


def _print_validation_error(e: ValidationError) -> None:
    print(f"Invalid input: {e.message}", file=sys.stderr)
    for issue in getattr(e, "issues", []):
        print(f"  - {issue['question_id']}: {issue['problem']}", file=sys.stderr)


if __name__ == "__main__":
    main()
