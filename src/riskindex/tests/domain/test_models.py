import hashlib
from datetime import datetime, timezone

import pytest

from riskindex.domain.cohorts import Industry, CompanySize, Region
from riskindex.domain.models import (
    OrgMeta,
    CohortFilter,
    BenchmarkSnapshot,
    BenchmarkSet,
    AssessmentOutcome,
)
from riskindex.domain.exceptions import AnswerValidationError


class TestOrgMeta:

    def test_from_raw_canonicalises(self):
        meta = OrgMeta.from_raw("financial-services", "51-250", "EMEA")
        assert meta == OrgMeta(Industry.FINANCIAL_SERVICES, CompanySize.SMALL_51_250, Region.EUROPE)

    def test_coerce_accepts_camel_case_size(self):
        meta = OrgMeta.coerce({"industry": "technology", "companySize": "5000+"})
        assert meta.company_size is CompanySize.ENTERPRISE_5000_PLUS
        assert meta.region is None

    def test_coerce_none_and_instance(self):
        assert OrgMeta.coerce(None) == OrgMeta()
        meta = OrgMeta(industry=Industry.RETAIL)
        assert OrgMeta.coerce(meta) is meta

    def test_org_meta_hash(self):
        meta = OrgMeta(Industry.HEALTHCARE, CompanySize.STARTUP_1_50)
        expected = hashlib.sha256(b"HEALTHCARE_STARTUP_1_50").hexdigest()[:16]
        assert meta.org_meta_hash == expected
        assert len(meta.org_meta_hash) == 16

    def test_org_meta_hash_requires_industry_and_size(self):
        assert OrgMeta(industry=Industry.HEALTHCARE).org_meta_hash is None
        assert OrgMeta(company_size=CompanySize.STARTUP_1_50).org_meta_hash is None

    def test_to_dict(self):
        assert OrgMeta(region=Region.GLOBAL).to_dict() == {
            "industry": None, "company_size": None, "region": "GLOBAL",
        }


class TestCohortFilter:

    def test_overall(self):
        assert CohortFilter().is_overall
        assert CohortFilter().dimension == "overall"

    def test_dimension(self):
        assert CohortFilter(industry=Industry.RETAIL).dimension == "industry"
        assert CohortFilter(size=CompanySize.STARTUP_1_50, region=Region.GLOBAL).dimension == "size+region"

    def test_snapshot_cohort(self):
        snap = BenchmarkSnapshot(
            period_end=datetime(2025, 1, 15, tzinfo=timezone.utc),
            average_score=60.0,
            industry=Industry.RETAIL,
        )
        assert snap.cohort == CohortFilter(industry=Industry.RETAIL)
        assert snap.to_dict()["industry"] == "RETAIL"


class TestBenchmarkSet:

    def test_unavailable(self):
        bset = BenchmarkSet.unavailable()
        assert bset.available is False
        assert all(snap is None for _, snap in bset.items())

    def test_items_order(self):
        assert [dim for dim, _ in BenchmarkSet().items()] == [
            "industry", "company_size", "region", "overall",
        ]


class TestAssessmentOutcome:

    def test_failure_unwrap_raises(self):
        err = AnswerValidationError("bad", issues=[{"question_id": "v1", "problem": "x"}])
        outcome = AssessmentOutcome.failure(err)
        assert not outcome.ok
        with pytest.raises(AnswerValidationError):
            outcome.unwrap()

    def test_failure_to_dict(self):
        err = AnswerValidationError("bad", issues=[{"question_id": "v1", "problem": "x"}])
        d = AssessmentOutcome.failure(err).to_dict()
        assert d["success"] is False
        assert d["error"]["error_code"] == "INVALID_ANSWERS"
