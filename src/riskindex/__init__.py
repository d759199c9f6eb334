"""Insider Risk Index scoring and benchmarking engine."""

__version__ = "0.1.0"

from riskindex.runners.assessment import compute_assessment, AssessmentService

__all__ = ["compute_assessment", "AssessmentService", "__version__"]
