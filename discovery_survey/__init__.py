"""Discovery Survey package

Mom Test question authoring and pain-signal analysis for open-text surveys.
"""

from .analyzer import PainSignalAnalyzer
from .config import ConfigManager, load_settings
from .critic import QuestionCritic
from .datamodel import (
    Analysis,
    AnalysisResult,
    Answer,
    Question,
    Response,
    Survey,
    SurveyConfig,
)
from .errors import (
    DuplicateAnalysis,
    EmptyResponse,
    EmptyResult,
    GatewayError,
    InsufficientSamples,
    MalformedResponse,
    NotFound,
    SchemaMismatch,
    SurveyAIError,
    ValidationError,
)
from .export import export_responses_csv
from .gateway import ModelGateway
from .generator import QuestionGenerator
from .orchestrator import SurveyOrchestrator
from .store import JsonFileSurveyStore, SurveyStore
from .synthetic import SyntheticAnswerGenerator

__all__ = [
    "Analysis",
    "AnalysisResult",
    "Answer",
    "Question",
    "Response",
    "Survey",
    "SurveyConfig",
    "ConfigManager",
    "load_settings",
    "ModelGateway",
    "QuestionGenerator",
    "QuestionCritic",
    "PainSignalAnalyzer",
    "SurveyOrchestrator",
    "SurveyStore",
    "JsonFileSurveyStore",
    "SyntheticAnswerGenerator",
    "export_responses_csv",
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
