import json
from datetime import datetime, timedelta

import pytest

from discovery_survey import (
    Answer,
    JsonFileSurveyStore,
    ModelGateway,
    Question,
    Response,
    Survey,
    SurveyConfig,
    SurveyOrchestrator,
)


@pytest.fixture
def config(tmp_path):
    return SurveyConfig(data_dir=str(tmp_path / "data"))


@pytest.fixture
def gateway(config):
    return ModelGateway(api_key="test_key", config=config)


@pytest.fixture
def store(config):
    return JsonFileSurveyStore(config.data_dir)


@pytest.fixture
def orchestrator(config, gateway, store):
    return SurveyOrchestrator(config=config, gateway=gateway, store=store)


@pytest.fixture
def sample_questions():
    return [
        Question(text="Tell me about the last time you decided which feature to build next."),
        Question(text="What did you do the last time a shipped feature went unused?"),
        Question(text="How much time did your team spend last quarter on features nobody used?"),
    ]


@pytest.fixture
def survey(store, sample_questions):
    return store.create_survey(
        Survey(
            id="survey-1",
            title="Feature validation",
            audience="SaaS founders building B2B products",
            hypothesis="Founders waste time building features nobody validated",
            questions=sample_questions,
            completion_code="LAPS-ABC123",
            created_at=datetime(2024, 1, 1, 9, 0, 0),
        )
    )


@pytest.fixture
def make_responses():
    def _make(count, survey_id="survey-1", questions=3):
        start = datetime(2024, 1, 2, 9, 0, 0)
        return [
            Response(
                id=f"resp-{i:03d}",
                survey_id=survey_id,
                answers=[
                    Answer(
                        question=f"Q{j + 1}",
                        answer=f"answer-from-respondent-{i:03d} about question {j + 1}, "
                        "we lost two sprints on it last quarter",
                    )
                    for j in range(questions)
                ],
                completed_at=start + timedelta(minutes=i),
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def full_analysis_payload():
    return json.dumps(
        {
            "signalStrength": "strong",
            "painFrequency": 72,
            "painIntensity": "high",
            "keyQuotes": ["We wasted two sprints on a feature nobody used"],
            "currentWorkarounds": ["Customer calls", "Spreadsheets of requests"],
            "recommendation": "Build it: founders lose real time and money here.",
            "confidence": "medium",
            "reasoning": "Most respondents describe concrete wasted sprints.",
        }
    )
