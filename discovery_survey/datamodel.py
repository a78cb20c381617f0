from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Dict, List, Optional

SIGNAL_STRENGTHS = ("strong", "weak", "none")
PAIN_INTENSITIES = ("high", "medium", "low")
CONFIDENCE_LEVELS = ("high", "medium", "low")
SAMPLE_POLICIES = ("first_n", "random")
EMPTY_GENERATION_POLICIES = ("fail", "degrade")


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Question:
    """
    A discovery question and its Mom Test review.

    Attributes:
        text (str): The question as shown to respondents
        mom_test_score (int): Critic score in [0, 100]; 0 until reviewed
        issues (List[str]): Critic findings such as "leading" or "hypothetical"
    """

    text: str
    mom_test_score: int = 0
    issues: List[str] = None

    def __post_init__(self):
        if self.issues is None:
            self.issues = []

    def to_dict(self) -> Dict:
        return {
            "text": self.text,
            "momTestScore": self.mom_test_score,
            "issues": list(self.issues),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Question":
        return cls(
            text=data["text"],
            mom_test_score=data.get("momTestScore", 0),
            issues=list(data.get("issues") or []),
        )


@dataclass
class Answer:
    question: str
    answer: str

    def to_dict(self) -> Dict:
        return {"question": self.question, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: Dict) -> "Answer":
        return cls(question=data.get("question", ""), answer=data.get("answer", ""))


@dataclass
class Response:
    """
    One respondent's submission. `answers` mirrors the survey's questions
    in length and order at submission time.
    """

    id: str
    survey_id: str
    answers: List[Answer] = None
    prolific_pid: Optional[str] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.answers is None:
            self.answers = []

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "surveyId": self.survey_id,
            "answers": [a.to_dict() for a in self.answers],
            "prolificPid": self.prolific_pid,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Response":
        return cls(
            id=data["id"],
            survey_id=data["surveyId"],
            answers=[Answer.from_dict(a) for a in data.get("answers", [])],
            prolific_pid=data.get("prolificPid"),
            completed_at=_parse_ts(data.get("completedAt")),
        )


@dataclass
class AnalysisResult:
    """Analyzer output before it is persisted against a survey."""

    signal_strength: str = "weak"
    pain_frequency: int = 0
    pain_intensity: str = "low"
    key_quotes: List[str] = field(default_factory=list)
    current_workarounds: List[str] = field(default_factory=list)
    recommendation: str = "Insufficient data for recommendation"
    confidence: str = "low"
    reasoning: str = "Analysis incomplete"

    def to_dict(self) -> Dict:
        return {
            "signalStrength": self.signal_strength,
            "painFrequency": self.pain_frequency,
            "painIntensity": self.pain_intensity,
            "keyQuotes": list(self.key_quotes),
            "currentWorkarounds": list(self.current_workarounds),
            "recommendation": self.recommendation,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }


@dataclass
class Analysis(AnalysisResult):
    """
    Persisted pain-signal verdict. At most one exists per survey; a new
    analysis replaces the previous one.
    """

    survey_id: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_result(
        cls, survey_id: str, result: AnalysisResult, created_at: Optional[datetime] = None
    ) -> "Analysis":
        return cls(
            survey_id=survey_id,
            created_at=created_at or datetime.now(),
            **{f.name: getattr(result, f.name) for f in fields(AnalysisResult)},
        )

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["surveyId"] = self.survey_id
        data["createdAt"] = self.created_at.isoformat() if self.created_at else None
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Analysis":
        defaults = AnalysisResult()
        return cls(
            survey_id=data["surveyId"],
            created_at=_parse_ts(data.get("createdAt")),
            signal_strength=data.get("signalStrength", defaults.signal_strength),
            pain_frequency=data.get("painFrequency", defaults.pain_frequency),
            pain_intensity=data.get("painIntensity", defaults.pain_intensity),
            key_quotes=list(data.get("keyQuotes") or []),
            current_workarounds=list(data.get("currentWorkarounds") or []),
            recommendation=data.get("recommendation", defaults.recommendation),
            confidence=data.get("confidence", defaults.confidence),
            reasoning=data.get("reasoning", defaults.reasoning),
        )


@dataclass
class Survey:
    """
    A published discovery survey.

    Attributes:
        id (str): Survey identifier
        title (str): Display title
        audience (str): Target audience description
        hypothesis (str): Problem hypothesis under test
        questions (List[Question]): Reviewed questions; order is the join key
            against response answers
        completion_code (str): Token shown to respondents after submitting;
            generated once at creation
        created_at (datetime): Creation time
        responses (List[Response]): Attached by the store on lookup
        analysis (Analysis): Attached by the store on lookup, if any
    """

    id: str
    title: str
    audience: str
    hypothesis: str
    questions: List[Question] = None
    completion_code: str = ""
    created_at: Optional[datetime] = None
    responses: List[Response] = None
    analysis: Optional[Analysis] = None

    def __post_init__(self):
        if self.questions is None:
            self.questions = []
        if self.responses is None:
            self.responses = []

    def to_dict(self) -> Dict:
        """Serialize the survey row itself; responses and analysis are stored apart."""
        return {
            "id": self.id,
            "title": self.title,
            "audience": self.audience,
            "hypothesis": self.hypothesis,
            "questions": [q.to_dict() for q in self.questions],
            "completionCode": self.completion_code,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Survey":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            audience=data.get("audience", ""),
            hypothesis=data.get("hypothesis", ""),
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
            completion_code=data.get("completionCode", ""),
            created_at=_parse_ts(data.get("createdAt")),
        )


@dataclass
class SurveyConfig:
    """
    Runtime configuration for the survey pipeline.

    Attributes:
        llm_model (str): OpenAI model used by every stage
        data_dir (str): Root directory for the JSON store and request logs
        question_count (int): Number of questions requested from the generator
        min_sample_threshold (int): Responses required before analysis may run
        max_analyzed_responses (int): Token-budget cap on responses per analysis
        sample_policy (str): "first_n" (submission order) or "random"
        empty_generation_policy (str): "fail" raises on zero generated
            questions, "degrade" returns an empty list
        request_timeout (float): Transport timeout for one model call, seconds
    """

    llm_model: str = "gpt-4o"
    data_dir: str = "outputs"
    question_count: int = 8
    generation_temperature: float = 0.7
    critique_temperature: float = 0.3
    analysis_temperature: float = 0.3
    synthetic_temperature: float = 0.8
    min_sample_threshold: int = 1
    max_analyzed_responses: int = 50
    sample_policy: str = "first_n"
    sample_seed: Optional[int] = None
    min_answer_length: int = 50
    completion_code_prefix: str = "LAPS"
    empty_generation_policy: str = "fail"
    request_timeout: float = 60.0
    enable_jsonl_logging: bool = False
    version: str = "v1"


__all__ = [
    "SIGNAL_STRENGTHS",
    "PAIN_INTENSITIES",
    "CONFIDENCE_LEVELS",
    "SAMPLE_POLICIES",
    "EMPTY_GENERATION_POLICIES",
    "Question",
    "Answer",
    "Response",
    "AnalysisResult",
    "Analysis",
    "Survey",
    "SurveyConfig",
]
