"""Published research baseline used to seed the snapshot store.

Figures come from the Ponemon Institute 2025 Cost of Insider Risks report and
the Verizon 2024 DBIR, scaled to the five-pillar questionnaire. They stand in
for real cohort data until enough assessments have been collected for the
refresh job to produce its own snapshots.
"""

import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from riskindex.data.db import utcnow
from riskindex.domain.cohorts import Industry, CompanySize
from riskindex.domain.models import BenchmarkSnapshot

logger = logging.getLogger(__name__)

REFERENCE_SOURCE = "reference-2025"
PILLAR_ORDER = (
    "visibility",
    "prevention-coaching",
    "investigation-evidence",
    "identity-saas",
    "phishing-resilience",
)

# average score, pillar averages (PILLAR_ORDER), sample size
INDUSTRY_REFERENCE: Dict[Industry, Tuple[float, Tuple[int, ...], int]] = {
    Industry.FINANCIAL_SERVICES: (74, (78, 71, 82, 76, 73), 3280),
    Industry.HEALTHCARE:         (58, (54, 52, 62, 56, 64), 2890),
    Industry.TECHNOLOGY:         (79, (82, 76, 81, 85, 74), 2140),
    Industry.MANUFACTURING:      (61, (59, 56, 64, 61, 65), 1560),
    Industry.RETAIL:             (64, (62, 60, 67, 65, 68), 1840),
    Industry.GOVERNMENT:         (72, (75, 69, 78, 71, 73), 980),
    Industry.EDUCATION:          (56, (53, 51, 59, 57, 61), 1240),
    Industry.NON_PROFIT:         (52, (49, 47, 55, 51, 58), 680),
}

SIZE_REFERENCE: Dict[CompanySize, Tuple[float, Tuple[int, ...], int]] = {
    CompanySize.STARTUP_1_50:         (48, (44, 42, 51, 46, 57), 4230),
    CompanySize.SMALL_51_250:         (58, (55, 53, 61, 57, 63), 3870),
    CompanySize.MID_251_1000:         (66, (63, 62, 69, 67, 67), 2940),
    CompanySize.LARGE_1001_5000:      (73, (72, 70, 76, 75, 70), 1890),
    CompanySize.ENTERPRISE_5000_PLUS: (79, (81, 77, 83, 84, 75), 1240),
}

OVERALL_AVERAGE = 64.2
OVERALL_SAMPLE_SIZE = 14170

def _pillars(values: Tuple[int, ...]) -> Dict[str, float]:
    return {pid: float(v) for pid, v in zip(PILLAR_ORDER, values)}

def overall_pillar_averages(table: Mapping = INDUSTRY_REFERENCE) -> Dict[str, float]:
    """Sample-weighted mean of the per-industry pillar averages."""
    total_n = sum(n for _, _, n in table.values())
    out: Dict[str, float] = {}
    for i, pid in enumerate(PILLAR_ORDER):
        weighted = sum(pillars[i] * n for _, pillars, n in table.values())
        out[pid] = round(weighted / total_n, 1)
    return out

def reference_snapshots(period_end: Optional[datetime] = None) -> List[BenchmarkSnapshot]:
    """All reference snapshots stamped with ``period_end`` (default: now)."""
    period_end = period_end or utcnow()
    snaps: List[BenchmarkSnapshot] = []

    for industry, (avg, pillars, n) in INDUSTRY_REFERENCE.items():
        snaps.append(BenchmarkSnapshot(
            period_end=period_end, average_score=float(avg), pillar_averages=_pillars(pillars),
            sample_size=n, industry=industry, source=REFERENCE_SOURCE,
        ))

    for size, (avg, pillars, n) in SIZE_REFERENCE.items():
        snaps.append(BenchmarkSnapshot(
            period_end=period_end, average_score=float(avg), pillar_averages=_pillars(pillars),
            sample_size=n, size=size, source=REFERENCE_SOURCE,
        ))

    snaps.append(BenchmarkSnapshot(
        period_end=period_end,
        average_score=OVERALL_AVERAGE,
        pillar_averages=overall_pillar_averages(),
        sample_size=OVERALL_SAMPLE_SIZE,
        source=REFERENCE_SOURCE,
    ))

    logger.debug("Built %d reference snapshots for %s", len(snaps), period_end.isoformat())
    return snaps
