"""Question catalog and pillar weight tables."""

from .models import Pillar, Question, MaturityLevel, QuestionnaireConfig
from .questionnaire import (
    DEFAULT_VERSION,
    get_questionnaire,
    register_questionnaire,
    available_versions,
)

__all__ = [
    "Pillar",
    "Question",
    "MaturityLevel",
    "QuestionnaireConfig",
    "DEFAULT_VERSION",
    "get_questionnaire",
    "register_questionnaire",
    "available_versions",
]
