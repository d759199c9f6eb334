"""Assessment entry points."""

from .assessment import compute_assessment, AssessmentService

__all__ = ["compute_assessment", "AssessmentService"]
