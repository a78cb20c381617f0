import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from .datamodel import (
    CONFIDENCE_LEVELS,
    PAIN_INTENSITIES,
    SIGNAL_STRENGTHS,
    AnalysisResult,
    Response,
    SurveyConfig,
)
from .gateway import ModelGateway
from .parsing import parse_json_payload
from .prompts import ANALYZER_SYSTEM_PROMPT, build_analysis_prompt

logger = logging.getLogger(__name__)

STAGE = "Pain Analysis"

DEFAULTS = AnalysisResult()


def _question_text(question) -> str:
    if isinstance(question, dict):
        return str(question.get("text", ""))
    return str(getattr(question, "text", question))


class PainSignalAnalyzer:
    """
    Aggregates free-text survey responses into a pain-signal verdict.

    At most `max_analyzed_responses` responses go into the prompt. With the
    default "first_n" policy these are the earliest submissions, which biases
    the verdict toward early respondents; "random" draws a seeded sample
    instead. Selected responses keep their submission order either way.

    Any field the model leaves out, or fills with a value outside its domain,
    falls back to its default on its own. Only an empty or unparseable payload
    fails the analysis.
    """

    def __init__(
        self, gateway: ModelGateway, config: Optional[SurveyConfig] = None
    ):
        self.gateway = gateway
        self.config = config or gateway.config

    async def analyze_async(
        self, responses: Sequence[Response], survey_questions: Sequence[Any]
    ) -> AnalysisResult:
        if not responses:
            raise ValueError("Need at least 1 response to analyze")

        selected = self.select_responses(responses)
        prompt = self.build_prompt(selected, survey_questions)
        logger.info(
            f"[{STAGE}] Analyzing {len(selected)} of {len(responses)} responses "
            f"({self.config.sample_policy})"
        )
        content = await self.gateway.invoke_async(
            ANALYZER_SYSTEM_PROMPT,
            prompt,
            self.config.analysis_temperature,
            stage=STAGE,
        )
        payload = parse_json_payload(content, STAGE)
        return self.to_result(payload)

    def select_responses(self, responses: Sequence[Response]) -> List[Response]:
        cap = self.config.max_analyzed_responses
        if len(responses) <= cap:
            return list(responses)
        if self.config.sample_policy == "random":
            rng = random.Random(self.config.sample_seed)
            picked = sorted(rng.sample(range(len(responses)), cap))
            return [responses[i] for i in picked]
        return list(responses[:cap])

    @staticmethod
    def render_response(position: int, response: Response) -> str:
        lines = [f"Response {position}:"]
        for j, answer in enumerate(response.answers):
            lines.append(f"  Q{j + 1}: {answer.answer}")
        return "\n".join(lines)

    def build_prompt(
        self, selected: Sequence[Response], survey_questions: Sequence[Any]
    ) -> str:
        rendered = [self.render_response(i + 1, r) for i, r in enumerate(selected)]
        return build_analysis_prompt(
            [_question_text(q) for q in survey_questions], rendered
        )

    def to_result(self, payload: Any) -> AnalysisResult:
        """Map a parsed payload onto AnalysisResult, defaulting field by field."""
        if isinstance(payload, list) and len(payload) == 1 and isinstance(payload[0], dict):
            payload = payload[0]
        if not isinstance(payload, dict):
            logger.warning(f"[{STAGE}] Expected a JSON object, got {type(payload).__name__}")
            payload = {}

        result = AnalysisResult(
            signal_strength=self._choice(
                payload, "signalStrength", SIGNAL_STRENGTHS, DEFAULTS.signal_strength
            ),
            pain_frequency=self._percentage(payload.get("painFrequency")),
            pain_intensity=self._choice(
                payload, "painIntensity", PAIN_INTENSITIES, DEFAULTS.pain_intensity
            ),
            key_quotes=self._strings(payload.get("keyQuotes")),
            current_workarounds=self._strings(payload.get("currentWorkarounds")),
            recommendation=self._text(payload.get("recommendation"), DEFAULTS.recommendation),
            confidence=self._choice(
                payload, "confidence", CONFIDENCE_LEVELS, DEFAULTS.confidence
            ),
            reasoning=self._text(payload.get("reasoning"), DEFAULTS.reasoning),
        )
        missing = [
            key
            for key in (
                "signalStrength",
                "painFrequency",
                "painIntensity",
                "keyQuotes",
                "currentWorkarounds",
                "recommendation",
                "confidence",
                "reasoning",
            )
            if payload.get(key) is None
        ]
        if missing:
            logger.warning(f"[{STAGE}] Defaulted missing fields: {', '.join(missing)}")
        logger.info(
            f"[{STAGE}] Signal {result.signal_strength} "
            f"(frequency {result.pain_frequency}%, intensity {result.pain_intensity})"
        )
        return result

    @staticmethod
    def _choice(payload: Dict, key: str, allowed: Sequence[str], default: str) -> str:
        value = payload.get(key)
        if value is None:
            return default
        normalized = str(value).strip().lower()
        if normalized not in allowed:
            logger.warning(f"[{STAGE}] Unexpected {key} {value!r}; using {default!r}")
            return default
        return normalized

    @staticmethod
    def _percentage(value) -> int:
        if value is None or isinstance(value, bool):
            return DEFAULTS.pain_frequency
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        try:
            number = int(round(float(value)))
        except (TypeError, ValueError):
            logger.warning(f"[{STAGE}] Unreadable painFrequency {value!r}")
            return DEFAULTS.pain_frequency
        return max(0, min(100, number))

    @staticmethod
    def _strings(value) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [str(v) for v in value if v is not None and str(v).strip()]
        return []

    @staticmethod
    def _text(value, default: str) -> str:
        if isinstance(value, str) and value.strip():
            return value
        return default


__all__ = ["PainSignalAnalyzer"]
