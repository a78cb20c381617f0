"""
Model Gateway - the single path from the pipeline to the LLM.

Every stage sends one chat completion in JSON-object response mode and gets
the raw text back. There are no retries: a failed or empty call surfaces to
the stage that made it.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import openai

from .config import resolve_api_key
from .datamodel import SurveyConfig
from .errors import EmptyResponse, GatewayError

logger = logging.getLogger(__name__)


class ModelGateway:
    """Sends system/user prompt pairs to the configured OpenAI model."""

    def __init__(
        self, api_key: Optional[str] = None, config: Optional[SurveyConfig] = None
    ):
        self.config = config or SurveyConfig()
        self.api_key = resolve_api_key(api_key)
        self.model = self.config.llm_model
        self.client = None

    def _ensure_client(self):
        """Initialize client if not already done"""
        if self.client is None:
            if not self.api_key:
                raise ValueError("OpenAI API key is required")
            self.client = openai.AsyncOpenAI(
                api_key=self.api_key,
                max_retries=0,
                timeout=self.config.request_timeout,
            )
        return self.client

    async def invoke_async(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        stage: str = "Gateway",
    ) -> str:
        """Run one completion and return the model's text payload."""
        if not system_prompt or not system_prompt.strip():
            raise ValueError("system_prompt must not be empty")
        if not user_prompt or not user_prompt.strip():
            raise ValueError("user_prompt must not be empty")
        if not 0.0 <= temperature <= 1.0:
            raise ValueError(f"temperature must be within [0, 1], got {temperature}")

        request = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await self._create_completion_async(request)
        except openai.OpenAIError as e:
            logger.error(f"[{stage}] OpenAI API call failed: {e}")
            raise GatewayError(f"OpenAI API call failed: {e}") from e

        self._log_usage(stage, response)
        self._write_jsonl(stage, request, response)

        content = None
        if response.choices:
            content = response.choices[0].message.content
        if not content:
            logger.error(f"[{stage}] No content in OpenAI response")
            raise EmptyResponse("No response from OpenAI")
        return content

    async def _create_completion_async(self, request: Dict):
        client = self._ensure_client()
        return await client.chat.completions.create(**request)

    def _log_usage(self, stage: str, response):
        usage = getattr(response, "usage", None)
        logger.info(
            f"[{stage}] Tokens used: prompt={getattr(usage, 'prompt_tokens', None)} "
            f"completion={getattr(usage, 'completion_tokens', None)} "
            f"total={getattr(usage, 'total_tokens', None)}"
        )

    def _write_jsonl(self, stage: str, request: Dict, response):
        if not self.config.enable_jsonl_logging:
            return
        # Request logging is advisory; a failure here must not fail the call.
        try:
            log_dir = Path(self.config.data_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            with open(log_dir / "requests.jsonl", "a") as jf:
                jf.write(
                    json.dumps(
                        {
                            "ts": datetime.now().isoformat(),
                            "stage": stage,
                            "model": self.model,
                            "request": request,
                            "response": response.model_dump()
                            if hasattr(response, "model_dump")
                            else str(response),
                        }
                    )
                    + "\n"
                )
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"[{stage}] Could not write request log: {e}")


__all__ = ["ModelGateway"]
