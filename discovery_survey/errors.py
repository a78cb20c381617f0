from typing import Any, List, Optional


class SurveyAIError(Exception):
    """Base class for failures the pipeline reports to its caller."""


class GatewayError(SurveyAIError):
    """The model provider call failed before any content came back."""


class EmptyResponse(GatewayError):
    """The provider answered but the message carried no content."""


class MalformedResponse(SurveyAIError):
    """The model's payload is not valid JSON."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class SchemaMismatch(SurveyAIError):
    """The payload is valid JSON but lacks the structure a stage needs."""

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload


class EmptyResult(SurveyAIError):
    """The expected array was present but yielded nothing usable."""


class InsufficientSamples(SurveyAIError):
    def __init__(self, count: int, threshold: int):
        super().__init__(
            f"Need at least {threshold} response{'s' if threshold != 1 else ''} "
            f"to analyze (have {count})"
        )
        self.count = count
        self.threshold = threshold


class NotFound(SurveyAIError):
    def __init__(self, survey_id: str):
        super().__init__(f"Survey not found: {survey_id}")
        self.survey_id = survey_id


class DuplicateAnalysis(SurveyAIError):
    def __init__(self, survey_id: str):
        super().__init__(f"Analysis already exists for survey {survey_id}")
        self.survey_id = survey_id


class ValidationError(SurveyAIError):
    """Input rejected before any model call or write; lists every failing field."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message or "; ".join(errors))
        self.errors = list(errors)


__all__ = [
    "SurveyAIError",
    "GatewayError",
    "EmptyResponse",
    "MalformedResponse",
    "SchemaMismatch",
    "EmptyResult",
    "InsufficientSamples",
    "NotFound",
    "DuplicateAnalysis",
    "ValidationError",
]
