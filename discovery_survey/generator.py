import logging
from typing import List, Optional

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
from .prompts import GENERATOR_SYSTEM_PROMPT, build_generation_prompt

logger = logging.getLogger(__name__)

STAGE = "Question Generation"


class QuestionGenerator:
    """
    Drafts candidate discovery questions for an audience and hypothesis.

    The prompt asks for `question_count` questions, but whatever number the
    model returns is passed through. Drafts come back unscored
    (score 0, no issues) for the critic to fill in.
    """

    ADAPTERS = (BARE_ARRAY, field_adapter("questions"), SOLE_ARRAY_FIELD)

    def __init__(
        self, gateway: ModelGateway, config: Optional[SurveyConfig] = None
    ):
        self.gateway = gateway
        self.config = config or gateway.config

    async def generate_async(self, audience: str, hypothesis: str) -> List[Question]:
        prompt = build_generation_prompt(
            audience, hypothesis, count=self.config.question_count
        )
        content = await self.gateway.invoke_async(
            GENERATOR_SYSTEM_PROMPT,
            prompt,
            self.config.generation_temperature,
            stage=STAGE,
        )
        payload = parse_json_payload(content, STAGE)
        _, items = extract_items(payload, self.ADAPTERS, STAGE)

        questions = []
        for position, item in enumerate(items):
            text = self._item_text(item)
            if not text:
                logger.warning(f"[{STAGE}] Skipping item {position + 1} without text")
                continue
            questions.append(Question(text=text, mom_test_score=0, issues=[]))

        if not questions:
            if self.config.empty_generation_policy == "degrade":
                logger.warning(f"[{STAGE}] Model returned no questions; continuing with none")
                return []
            raise EmptyResult("OpenAI returned no questions")

        logger.info(f"[{STAGE}] Generated {len(questions)} questions")
        return questions

    @staticmethod
    def _item_text(item) -> str:
        if isinstance(item, str):
            return item.strip()
        if isinstance(item, dict):
            text = item.get("text") or item.get("question")
            if isinstance(text, str):
                return text.strip()
        return ""


__all__ = ["QuestionGenerator"]
