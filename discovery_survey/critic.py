import logging
from dataclasses import replace
from typing import Dict, List, Optional

from .datamodel import Question, SurveyConfig
from .errors import EmptyResult
from .gateway import ModelGateway
from .parsing import (
    BARE_ARRAY,
    SOLE_ARRAY_FIELD,
    extract_items,
    field_adapter,
    parse_json_payload,
)
from .prompts import CRITIC_SYSTEM_PROMPT, build_critique_prompt

logger = logging.getLogger(__name__)

STAGE = "Question Critique"

DEFAULT_SCORE = 50


def _normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def _coerce_score(value) -> int:
    if isinstance(value, bool) or value is None:
        return DEFAULT_SCORE
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return DEFAULT_SCORE
    return max(0, min(100, score))


def _coerce_issues(value) -> List[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return []


class QuestionCritic:
    """
    Scores questions against the Mom Test and merges the verdicts back.

    The output always has the same length and order as the input. A critique
    is matched to its question by echoed text first; when the text does not
    match, the critique at the same position is used, unless another question
    already claimed it by text. Positions left without a critique keep the
    defaults (score 50, no issues).
    """

    ADAPTERS = (
        BARE_ARRAY,
        field_adapter("critiques"),
        field_adapter("questions"),
        SOLE_ARRAY_FIELD,
    )

    def __init__(
        self, gateway: ModelGateway, config: Optional[SurveyConfig] = None
    ):
        self.gateway = gateway
        self.config = config or gateway.config

    async def critique_async(self, questions: List[Question]) -> List[Question]:
        if not questions:
            return []

        prompt = build_critique_prompt([q.text for q in questions])
        content = await self.gateway.invoke_async(
            CRITIC_SYSTEM_PROMPT,
            prompt,
            self.config.critique_temperature,
            stage=STAGE,
        )
        payload = parse_json_payload(content, STAGE)
        _, critiques = extract_items(payload, self.ADAPTERS, STAGE)

        if not critiques:
            raise EmptyResult("OpenAI returned no critiques")

        logger.info(f"[{STAGE}] Critiqued {len(critiques)} questions")
        return self.merge(questions, critiques)

    def merge(self, questions: List[Question], critiques: List) -> List[Question]:
        """Attach critique scores and issues to questions; never reorders."""
        entries: List[Optional[Dict]] = [
            c if isinstance(c, dict) else None for c in critiques
        ]

        by_text: Dict[str, List[int]] = {}
        for idx, entry in enumerate(entries):
            text = entry.get("text") if entry else None
            if isinstance(text, str) and text.strip():
                by_text.setdefault(_normalize(text), []).append(idx)

        # Each critique is claimed once. Repeated question texts take their
        # own position first, then the earliest unclaimed match.
        keys = [_normalize(q.text) for q in questions]
        matched: List[Optional[int]] = [None] * len(questions)
        claimed = set()
        for position, key in enumerate(keys):
            if position in by_text.get(key, ()):
                matched[position] = position
                claimed.add(position)
        for position, key in enumerate(keys):
            if matched[position] is not None:
                continue
            for idx in by_text.get(key, ()):
                if idx not in claimed:
                    matched[position] = idx
                    claimed.add(idx)
                    break

        merged = []
        fallbacks = 0
        defaulted = 0
        for position, question in enumerate(questions):
            idx = matched[position]
            if idx is None:
                if position < len(entries) and position not in claimed:
                    idx = position
                    fallbacks += 1
            entry = entries[idx] if idx is not None else None
            if entry is None:
                defaulted += 1
                merged.append(replace(question, mom_test_score=DEFAULT_SCORE, issues=[]))
                continue
            merged.append(
                replace(
                    question,
                    mom_test_score=_coerce_score(entry.get("score")),
                    issues=_coerce_issues(entry.get("issues")),
                )
            )

        if fallbacks:
            logger.warning(
                f"[{STAGE}] {fallbacks} of {len(questions)} critiques merged by position "
                f"(echoed text did not match)"
            )
        if defaulted:
            logger.warning(
                f"[{STAGE}] {defaulted} of {len(questions)} questions had no critique; "
                f"kept default score {DEFAULT_SCORE}"
            )
        return merged


__all__ = ["QuestionCritic", "DEFAULT_SCORE"]
