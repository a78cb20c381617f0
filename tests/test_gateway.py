"""
Tests for ModelGateway: request shape, empty-content handling, provider
error wrapping and the optional JSONL request log.
"""

import json
import logging
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import openai
import pytest

from discovery_survey import EmptyResponse, GatewayError, ModelGateway, SurveyConfig


def completion(content, prompt_tokens=120, completion_tokens=80):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


@pytest.mark.gateway
class TestInvoke:
    @pytest.mark.asyncio
    async def test_returns_content_and_requests_json_mode(self, gateway):
        with patch.object(
            gateway,
            "_create_completion_async",
            new=AsyncMock(return_value=completion('{"questions": []}')),
        ) as mock_create:
            text = await gateway.invoke_async("system text", "user text", 0.3)

        assert text == '{"questions": []}'
        request = mock_create.call_args.args[0]
        assert request["model"] == "gpt-4o"
        assert request["temperature"] == 0.3
        assert request["response_format"] == {"type": "json_object"}
        assert request["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    @pytest.mark.asyncio
    async def test_configured_model_is_used(self, tmp_path):
        gateway = ModelGateway(
            api_key="test_key",
            config=SurveyConfig(llm_model="gpt-4o-mini", data_dir=str(tmp_path)),
        )
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion("{}"))
        ) as mock_create:
            await gateway.invoke_async("s", "u", 0.7)
        assert mock_create.call_args.args[0]["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, ""])
    async def test_empty_content_raises_empty_response(self, gateway, content):
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion(content))
        ):
            with pytest.raises(EmptyResponse, match="No response from OpenAI"):
                await gateway.invoke_async("s", "u", 0.3)

    @pytest.mark.asyncio
    async def test_no_choices_raises_empty_response(self, gateway):
        response = SimpleNamespace(choices=[], usage=None)
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=response)
        ):
            with pytest.raises(EmptyResponse):
                await gateway.invoke_async("s", "u", 0.3)

    @pytest.mark.asyncio
    async def test_empty_response_is_a_gateway_error(self, gateway):
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion(""))
        ):
            with pytest.raises(GatewayError):
                await gateway.invoke_async("s", "u", 0.3)

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, gateway):
        with patch.object(
            gateway,
            "_create_completion_async",
            new=AsyncMock(side_effect=openai.OpenAIError("connection reset")),
        ):
            with pytest.raises(GatewayError, match="connection reset") as exc_info:
                await gateway.invoke_async("s", "u", 0.3)
        assert isinstance(exc_info.value.__cause__, openai.OpenAIError)

    @pytest.mark.asyncio
    async def test_provider_is_called_once(self, gateway):
        mock_create = AsyncMock(side_effect=openai.OpenAIError("rate limited"))
        with patch.object(gateway, "_create_completion_async", new=mock_create):
            with pytest.raises(GatewayError):
                await gateway.invoke_async("s", "u", 0.3)
        assert mock_create.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("temperature", [-0.1, 1.5])
    async def test_rejects_temperature_out_of_range(self, gateway, temperature):
        mock_create = AsyncMock(return_value=completion("{}"))
        with patch.object(gateway, "_create_completion_async", new=mock_create):
            with pytest.raises(ValueError, match="temperature"):
                await gateway.invoke_async("s", "u", temperature)
        mock_create.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("system_prompt,user_prompt", [("", "u"), ("s", "   ")])
    async def test_rejects_empty_prompts(self, gateway, system_prompt, user_prompt):
        with pytest.raises(ValueError, match="must not be empty"):
            await gateway.invoke_async(system_prompt, user_prompt, 0.3)

    @pytest.mark.asyncio
    async def test_logs_token_usage_with_stage(self, gateway, caplog):
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion("{}"))
        ):
            with caplog.at_level(logging.INFO, logger="discovery_survey.gateway"):
                await gateway.invoke_async("s", "u", 0.3, stage="Pain Analysis")
        assert "[Pain Analysis] Tokens used: prompt=120 completion=80 total=200" in caplog.text


@pytest.mark.gateway
class TestClient:
    def test_client_disables_retries_and_sets_timeout(self, gateway):
        with patch("discovery_survey.gateway.openai.AsyncOpenAI") as mock_client:
            gateway._ensure_client()
        mock_client.assert_called_once_with(api_key="test_key", max_retries=0, timeout=60.0)

    def test_client_is_built_once(self, gateway):
        with patch("discovery_survey.gateway.openai.AsyncOpenAI") as mock_client:
            first = gateway._ensure_client()
            second = gateway._ensure_client()
        assert first is second
        assert mock_client.call_count == 1

    def test_missing_api_key_raises(self, config, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with patch("discovery_survey.config.load_dotenv"):
            gateway = ModelGateway(config=config)
        with pytest.raises(ValueError, match="API key"):
            gateway._ensure_client()


@pytest.mark.gateway
class TestJsonlLogging:
    @pytest.mark.asyncio
    async def test_disabled_by_default(self, gateway, config):
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion("{}"))
        ):
            await gateway.invoke_async("s", "u", 0.3)
        assert not (Path(config.data_dir) / "requests.jsonl").exists()

    @pytest.mark.asyncio
    async def test_writes_one_line_per_call(self, tmp_path):
        config = SurveyConfig(data_dir=str(tmp_path / "logs"), enable_jsonl_logging=True)
        gateway = ModelGateway(api_key="test_key", config=config)
        with patch.object(
            gateway, "_create_completion_async", new=AsyncMock(return_value=completion("{}"))
        ):
            await gateway.invoke_async("s", "first", 0.3, stage="Question Generation")
            await gateway.invoke_async("s", "second", 0.3, stage="Question Critique")

        lines = (tmp_path / "logs" / "requests.jsonl").read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["stage"] == "Question Generation"
        assert first["model"] == "gpt-4o"
        assert first["request"]["messages"][1]["content"] == "first"
        assert json.loads(lines[1])["stage"] == "Question Critique"
