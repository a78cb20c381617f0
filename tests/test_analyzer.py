"""
Tests for PainSignalAnalyzer: the response cap, field-by-field defaults and
value normalization.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from discovery_survey import (
    AnalysisResult,
    MalformedResponse,
    PainSignalAnalyzer,
    SurveyConfig,
)


@pytest.mark.analysis
class TestAnalyze:
    @pytest.fixture
    def analyzer(self, gateway):
        return PainSignalAnalyzer(gateway)

    @pytest.mark.asyncio
    async def test_full_payload_is_mapped(
        self, analyzer, make_responses, sample_questions, full_analysis_payload
    ):
        with patch.object(
            analyzer.gateway, "invoke_async", new=AsyncMock(return_value=full_analysis_payload)
        ):
            result = await analyzer.analyze_async(make_responses(4), sample_questions)

        assert result.signal_strength == "strong"
        assert result.pain_frequency == 72
        assert result.pain_intensity == "high"
        assert result.key_quotes == ["We wasted two sprints on a feature nobody used"]
        assert result.current_workarounds == ["Customer calls", "Spreadsheets of requests"]
        assert result.confidence == "medium"
        assert result.reasoning.startswith("Most respondents")

    @pytest.mark.asyncio
    async def test_empty_object_yields_defaults(self, analyzer, make_responses, sample_questions):
        with patch.object(analyzer.gateway, "invoke_async", new=AsyncMock(return_value="{}")):
            result = await analyzer.analyze_async(make_responses(2), sample_questions)

        assert result == AnalysisResult(
            signal_strength="weak",
            pain_frequency=0,
            pain_intensity="low",
            key_quotes=[],
            current_workarounds=[],
            recommendation="Insufficient data for recommendation",
            confidence="low",
            reasoning="Analysis incomplete",
        )

    @pytest.mark.asyncio
    async def test_partial_payload_defaults_only_missing_fields(
        self, analyzer, make_responses, sample_questions
    ):
        payload = json.dumps({"signalStrength": "none", "painFrequency": 15})
        with patch.object(analyzer.gateway, "invoke_async", new=AsyncMock(return_value=payload)):
            result = await analyzer.analyze_async(make_responses(2), sample_questions)

        assert result.signal_strength == "none"
        assert result.pain_frequency == 15
        assert result.pain_intensity == "low"
        assert result.recommendation == "Insufficient data for recommendation"

    @pytest.mark.asyncio
    async def test_caps_prompt_at_first_fifty_responses(
        self, analyzer, make_responses, sample_questions
    ):
        mock_invoke = AsyncMock(return_value="{}")
        with patch.object(analyzer.gateway, "invoke_async", new=mock_invoke):
            await analyzer.analyze_async(make_responses(75), sample_questions)

        _, user_prompt, temperature = mock_invoke.call_args.args
        assert temperature == 0.3
        assert "(n=50)" in user_prompt
        assert "Response 50:" in user_prompt
        assert "Response 51:" not in user_prompt
        assert "answer-from-respondent-049" in user_prompt
        assert "answer-from-respondent-050" not in user_prompt
        assert "answer-from-respondent-074" not in user_prompt

    @pytest.mark.asyncio
    async def test_prompt_lists_questions(self, analyzer, make_responses, sample_questions):
        mock_invoke = AsyncMock(return_value="{}")
        with patch.object(analyzer.gateway, "invoke_async", new=mock_invoke):
            await analyzer.analyze_async(make_responses(1), sample_questions)

        user_prompt = mock_invoke.call_args.args[1]
        assert f"Q1: {sample_questions[0].text}" in user_prompt
        assert "Response 1:\n  Q1: answer-from-respondent-000" in user_prompt

    @pytest.mark.asyncio
    async def test_accepts_question_dicts(self, analyzer, make_responses):
        mock_invoke = AsyncMock(return_value="{}")
        with patch.object(analyzer.gateway, "invoke_async", new=mock_invoke):
            await analyzer.analyze_async(
                make_responses(1, questions=1), [{"text": "What did it cost you?"}]
            )
        assert "Q1: What did it cost you?" in mock_invoke.call_args.args[1]

    @pytest.mark.asyncio
    async def test_no_responses_raises_before_calling(self, analyzer, sample_questions):
        mock_invoke = AsyncMock()
        with patch.object(analyzer.gateway, "invoke_async", new=mock_invoke):
            with pytest.raises(ValueError):
                await analyzer.analyze_async([], sample_questions)
        mock_invoke.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self, analyzer, make_responses, sample_questions):
        with patch.object(
            analyzer.gateway, "invoke_async", new=AsyncMock(return_value="strong signal!")
        ):
            with pytest.raises(MalformedResponse):
                await analyzer.analyze_async(make_responses(1), sample_questions)

    @pytest.mark.asyncio
    async def test_non_object_payload_yields_defaults(self, analyzer, make_responses, sample_questions):
        with patch.object(analyzer.gateway, "invoke_async", new=AsyncMock(return_value="[1, 2]")):
            result = await analyzer.analyze_async(make_responses(1), sample_questions)
        assert result == AnalysisResult()


@pytest.mark.analysis
class TestSelection:
    def test_under_cap_keeps_everything(self, gateway, make_responses):
        analyzer = PainSignalAnalyzer(gateway)
        responses = make_responses(10)
        assert analyzer.select_responses(responses) == responses

    def test_random_policy_is_seeded_and_keeps_order(self, gateway, make_responses, tmp_path):
        config = SurveyConfig(data_dir=str(tmp_path), sample_policy="random", sample_seed=7)
        analyzer = PainSignalAnalyzer(gateway, config)
        responses = make_responses(120)

        first = analyzer.select_responses(responses)
        second = analyzer.select_responses(responses)

        assert len(first) == 50
        assert [r.id for r in first] == [r.id for r in second]
        positions = [responses.index(r) for r in first]
        assert positions == sorted(positions)

    def test_custom_cap(self, gateway, make_responses, tmp_path):
        config = SurveyConfig(data_dir=str(tmp_path), max_analyzed_responses=5)
        analyzer = PainSignalAnalyzer(gateway, config)
        selected = analyzer.select_responses(make_responses(12))
        assert [r.id for r in selected] == [f"resp-{i:03d}" for i in range(5)]


@pytest.mark.analysis
class TestNormalization:
    @pytest.fixture
    def analyzer(self, gateway):
        return PainSignalAnalyzer(gateway)

    def test_enum_values_are_lowercased(self, analyzer):
        result = analyzer.to_result(
            {"signalStrength": "STRONG", "painIntensity": " Medium ", "confidence": "High"}
        )
        assert (result.signal_strength, result.pain_intensity, result.confidence) == (
            "strong",
            "medium",
            "high",
        )

    def test_unknown_enum_values_fall_back(self, analyzer):
        result = analyzer.to_result(
            {"signalStrength": "moderate", "painIntensity": "extreme", "confidence": "certain"}
        )
        assert (result.signal_strength, result.pain_intensity, result.confidence) == (
            "weak",
            "low",
            "low",
        )

    @pytest.mark.parametrize(
        "raw,expected",
        [(45, 45), ("45%", 45), (62.6, 63), (140, 100), (-3, 0), ("lots", 0), (True, 0)],
    )
    def test_pain_frequency(self, analyzer, raw, expected):
        assert analyzer.to_result({"painFrequency": raw}).pain_frequency == expected

    def test_string_lists_are_coerced(self, analyzer):
        result = analyzer.to_result(
            {"keyQuotes": "Only one quote", "currentWorkarounds": ["Excel", None, "  "]}
        )
        assert result.key_quotes == ["Only one quote"]
        assert result.current_workarounds == ["Excel"]

    def test_single_object_list_is_unwrapped(self, analyzer):
        result = analyzer.to_result([{"signalStrength": "strong"}])
        assert result.signal_strength == "strong"

    def test_blank_text_fields_fall_back(self, analyzer):
        result = analyzer.to_result({"recommendation": "  ", "reasoning": None})
        assert result.recommendation == "Insufficient data for recommendation"
        assert result.reasoning == "Analysis incomplete"
