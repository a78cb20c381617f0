"""
Synthetic respondents for exercising a survey end to end without recruiting.
Not for production data: answers are role-played by the model.
"""

import logging
from typing import List, Optional, Sequence

from .datamodel import SurveyConfig
from .errors import SchemaMismatch
from .gateway import ModelGateway
from .parsing import BARE_ARRAY, extract_items, field_adapter, parse_json_payload
from .prompts import SYNTHETIC_SYSTEM_PROMPT, build_synthetic_answers_prompt

logger = logging.getLogger(__name__)

STAGE = "Synthetic Answers"


class SyntheticAnswerGenerator:
    ADAPTERS = (field_adapter("answers"), BARE_ARRAY)

    def __init__(
        self, gateway: ModelGateway, config: Optional[SurveyConfig] = None
    ):
        self.gateway = gateway
        self.config = config or gateway.config

    async def generate_answers_async(
        self, questions: Sequence[str], audience: str, hypothesis: str
    ) -> List[str]:
        """Return one role-played answer per question, in question order."""
        prompt = build_synthetic_answers_prompt(questions, audience, hypothesis)
        content = await self.gateway.invoke_async(
            SYNTHETIC_SYSTEM_PROMPT,
            prompt,
            self.config.synthetic_temperature,
            stage=STAGE,
        )
        payload = parse_json_payload(content, STAGE)
        _, answers = extract_items(payload, self.ADAPTERS, STAGE)

        if len(answers) != len(questions) or not all(isinstance(a, str) for a in answers):
            raise SchemaMismatch(
                f"OpenAI returned {len(answers)} answers for {len(questions)} questions",
                payload=payload,
            )
        logger.info(f"[{STAGE}] Generated {len(answers)} answers")
        return answers


__all__ = ["SyntheticAnswerGenerator"]
