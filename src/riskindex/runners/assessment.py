"""Public entry point for scoring, benchmarking and persisting assessments."""

import uuid
import logging
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, Optional, Union

from riskindex.catalog import QuestionnaireConfig, get_questionnaire
from riskindex.config.settings import Settings, get_settings
from riskindex.config.resolvers import resolve_db_path
from riskindex.data.db import connect, utcnow
from riskindex.data.schema import init_schema
from riskindex.data.assessment_repo import insert_assessment, fetch_assessment
from riskindex.benchmarks.resolver import BenchmarkResolver, SqliteSnapshotStore, cohort_queries
from riskindex.benchmarks.refresh import BenchmarkRefreshJob, BackgroundRefresher
from riskindex.processing.validation import AnswerValidator, RawAnswers
from riskindex.scoring.engine import ScoringEngine
from riskindex.results.assemblers import assemble, rebenchmark
from riskindex.domain.models import (
    AssessmentOutcome,
    AssessmentResult,
    BenchmarkSet,
    OrgMeta,
    StoredAssessment,
)
from riskindex.domain.exceptions import (
    BenchmarkUnavailableError,
    DatabaseError,
    InvalidInputError,
    ParameterValidationError,
    ValidationError,
)

logger = logging.getLogger(__name__)

OrgMetaLike = Union[OrgMeta, Dict[str, Any], None]

def resolve_or_empty(
    resolver: Optional[BenchmarkResolver],
    org_meta: OrgMeta,
    as_of: Optional[datetime] = None,
) -> BenchmarkSet:
    """Benchmark errors stop here: log and continue without benchmarks."""
    if resolver is None:
        return BenchmarkSet.unavailable()
    try:
        return resolver.resolve_benchmarks(org_meta, as_of)
    except BenchmarkUnavailableError as e:
        logger.warning("Benchmarks unavailable, continuing without: %s", e.message)
        return BenchmarkSet.unavailable()

def default_resolver(settings: Settings) -> Optional[BenchmarkResolver]:
    """Resolver over the configured record store, or None when benchmarks are off or no store exists."""
    if not settings.benchmarks.enabled:
        return None
    db_path = resolve_db_path(settings.database.path)
    if not db_path.exists():
        logger.info("No record store at %s; scoring without benchmarks", db_path)
        return None
    try:
        store = SqliteSnapshotStore(db_path, settings.database.busy_timeout_ms)
    except DatabaseError as e:
        logger.warning("Benchmark store unavailable, continuing without: %s", e.message)
        return None
    return BenchmarkResolver(store, settings.benchmarks)

def compute_assessment(
    answers: RawAnswers,
    org_meta: OrgMetaLike = None,
    *,
    questionnaire: Optional[QuestionnaireConfig] = None,
    resolver: Optional[BenchmarkResolver] = None,
    settings: Optional[Settings] = None,
    as_of: Optional[datetime] = None,
) -> AssessmentOutcome:
    """
    Validate, score, benchmark and assemble one assessment.

    Web, PDF and email callers all go through this function. Scoring-path
    errors come back as a failed outcome; ``ConfigurationError`` still propagates.
    Without an injected ``resolver`` the configured record store is used for
    benchmarks, when it exists.
    """
    settings = settings or get_settings()
    questionnaire = questionnaire or get_questionnaire(settings.scoring.questionnaire_version)
    meta = OrgMeta.coerce(org_meta)

    try:
        validated = AnswerValidator(questionnaire).validate(answers)
        scoring_result = ScoringEngine(questionnaire, settings.scoring).score(validated, meta)
    except (ValidationError, InvalidInputError) as e:
        logger.info("Assessment rejected [%s]: %s", e.error_code, e.message)
        return AssessmentOutcome.failure(e)

    owned = None
    if resolver is None:
        resolver = owned = default_resolver(settings)
    try:
        benchmark_set = resolve_or_empty(resolver, meta, as_of)
    finally:
        if owned is not None:
            owned.close()
    return AssessmentOutcome.success(assemble(scoring_result, benchmark_set))


class AssessmentService:
    """
    Submission flow on top of the record store:
    validate -> score -> benchmark -> assemble -> persist -> enqueue refresh.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        settings: Optional[Settings] = None,
        *,
        questionnaire: Optional[QuestionnaireConfig] = None,
        resolver: Optional[BenchmarkResolver] = None,
        refresher: Optional[BackgroundRefresher] = None,
    ):
        self.settings = settings or get_settings()
        self.db_path = resolve_db_path(db_path or self.settings.database.path)
        self.questionnaire = questionnaire or get_questionnaire(
            self.settings.scoring.questionnaire_version
        )

        conn = connect(self.db_path, self.settings.database.busy_timeout_ms,
                       self.settings.database.pragma_settings)
        try:
            init_schema(conn)
        finally:
            conn.close()

        self.resolver = resolver or BenchmarkResolver(
            SqliteSnapshotStore(self.db_path, self.settings.database.busy_timeout_ms),
            self.settings.benchmarks,
        )
        self.refresher = refresher or BackgroundRefresher(
            BenchmarkRefreshJob(self.db_path, self.settings)
        )

    def score(self, answers: RawAnswers, org_meta: OrgMetaLike = None,
              as_of: Optional[datetime] = None) -> AssessmentOutcome:
        return compute_assessment(
            answers, org_meta,
            questionnaire=self.questionnaire,
            resolver=self.resolver,
            settings=self.settings,
            as_of=as_of,
        )

    def submit(
        self,
        answers: RawAnswers,
        org_meta: OrgMetaLike = None,
        *,
        email_opt_in: bool = False,
        contact_email: Optional[str] = None,
        assessment_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> StoredAssessment:
        """Score and persist one submission. Raises the validation error on bad input."""
        meta = OrgMeta.coerce(org_meta)
        now = now or utcnow()
        if email_opt_in and (not contact_email or "@" not in contact_email):
            raise ParameterValidationError("contact_email", contact_email, expected_type="email address")
        validated = AnswerValidator(self.questionnaire).validate(answers)
        result = self.score(validated, meta, as_of=now).unwrap()

        record = StoredAssessment(
            assessment_id=assessment_id or uuid.uuid4().hex,
            created_at=now,
            org_meta=meta,
            answers=tuple(validated),
            result=result,
            org_meta_hash=meta.org_meta_hash,
            email_opt_in=email_opt_in,
            contact_email=contact_email if email_opt_in else None,
        )

        if self.settings.dry_run:
            logger.info("Dry run: assessment %s not stored", record.assessment_id)
            return record

        conn = connect(self.db_path, self.settings.database.busy_timeout_ms,
                       self.settings.database.pragma_settings)
        try:
            insert_assessment(conn, record)
        finally:
            conn.close()
        logger.info("Stored assessment %s (score %s, level %d)",
                    record.assessment_id, result.total_score, result.level)

        affected = [c for dim, c in cohort_queries(meta).items() if dim != "overall"]
        self.refresher.enqueue(affected)
        return record

    def get(self, assessment_id: str, as_of: Optional[datetime] = None) -> AssessmentResult:
        """Stored result with a freshly resolved benchmark comparison."""
        record = fetch_assessment(self.db_path, assessment_id)
        benchmark_set = resolve_or_empty(self.resolver, record.org_meta, as_of)
        return rebenchmark(record.result, benchmark_set)

    def close(self) -> None:
        self.refresher.stop()
        self.resolver.close()

    def __enter__(self) -> "AssessmentService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
