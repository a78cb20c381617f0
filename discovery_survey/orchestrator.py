import asyncio
import logging
import secrets
import string
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .analyzer import PainSignalAnalyzer
from .critic import QuestionCritic
from .datamodel import Analysis, Answer, Question, Response, Survey, SurveyConfig
from .errors import EmptyResult, InsufficientSamples, NotFound
from .gateway import ModelGateway
from .generator import QuestionGenerator
from .store import JsonFileSurveyStore, SurveyStore
from .validation import validate_answers, validate_authoring_input, validate_survey_input

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


class SurveyOrchestrator:
    """
    Sequences the pipeline stages and owns the survey/analysis lifecycle.

    Authoring runs the generator and then the critic; nothing is persisted
    until the caller creates the survey from the reviewed questions.
    Analysis runs are serialized per survey so a survey never ends up with
    two analyses, and the stored analysis is only replaced once a new one
    has been produced.
    """

    def __init__(
        self,
        config: Optional[SurveyConfig] = None,
        gateway: Optional[ModelGateway] = None,
        store: Optional[SurveyStore] = None,
        api_key: Optional[str] = None,
    ):
        self.config = config or (gateway.config if gateway else SurveyConfig())
        self.gateway = gateway or ModelGateway(api_key=api_key, config=self.config)
        self.store = store or JsonFileSurveyStore(self.config.data_dir)
        self.generator = QuestionGenerator(self.gateway, self.config)
        self.critic = QuestionCritic(self.gateway, self.config)
        self.analyzer = PainSignalAnalyzer(self.gateway, self.config)
        self._analysis_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    # -------------------------
    # Authoring
    # -------------------------
    async def author_async(self, audience: str, hypothesis: str) -> List[Question]:
        """Generate questions and review them; order is preserved end to end."""
        validate_authoring_input(audience, hypothesis)
        drafts = await self.generator.generate_async(audience, hypothesis)
        return await self.critic.critique_async(drafts)

    async def regenerate_question_async(self, audience: str, hypothesis: str) -> Question:
        """Run authoring again and hand back the first reviewed question."""
        reviewed = await self.author_async(audience, hypothesis)
        if not reviewed:
            raise EmptyResult("No replacement question was generated")
        return reviewed[0]

    # -------------------------
    # Surveys + responses
    # -------------------------
    def generate_completion_code(self) -> str:
        suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
        return f"{self.config.completion_code_prefix}-{suffix}"

    def create_survey(
        self, title: str, audience: str, hypothesis: str, questions: Sequence[Question]
    ) -> Survey:
        validate_survey_input(title, audience, hypothesis, questions)
        survey = Survey(
            id=str(uuid.uuid4()),
            title=title.strip(),
            audience=audience.strip(),
            hypothesis=hypothesis.strip(),
            questions=list(questions),
            completion_code=self.generate_completion_code(),
            created_at=datetime.now(),
        )
        return self.store.create_survey(survey)

    def list_surveys(self) -> List[Survey]:
        return self.store.list_surveys()

    def get_survey(self, survey_id: str) -> Survey:
        survey = self.store.find_survey_by_id(survey_id)
        if survey is None:
            raise NotFound(survey_id)
        return survey

    def submit_response(
        self,
        survey_id: str,
        answers: Sequence[Answer],
        prolific_pid: Optional[str] = None,
    ) -> Response:
        survey = self.get_survey(survey_id)
        validate_answers(
            answers, [q.text for q in survey.questions], self.config.min_answer_length
        )
        response = Response(
            id=str(uuid.uuid4()),
            survey_id=survey_id,
            answers=list(answers),
            prolific_pid=prolific_pid or None,
            completed_at=datetime.now(),
        )
        return self.store.create_response(response)

    async def response_counts_async(self, survey_ids: Sequence[str]) -> Dict[str, int]:
        """Fetch response counts for many surveys concurrently."""
        counts = await asyncio.gather(
            *(asyncio.to_thread(self.store.count_responses, sid) for sid in survey_ids)
        )
        return dict(zip(survey_ids, counts))

    # -------------------------
    # Analysis lifecycle
    # -------------------------
    def get_analysis(self, survey_id: str) -> Optional[Analysis]:
        return self.store.find_analysis(survey_id)

    async def analyze_or_replace_async(self, survey_id: str) -> Analysis:
        lock = self._analysis_locks.setdefault(survey_id, asyncio.Lock())
        self._lock_users[survey_id] = self._lock_users.get(survey_id, 0) + 1
        try:
            async with lock:
                return await self._analyze_locked_async(survey_id)
        finally:
            # Drop the lock once nobody holds or waits on it.
            self._lock_users[survey_id] -= 1
            if not self._lock_users[survey_id]:
                del self._lock_users[survey_id]
                del self._analysis_locks[survey_id]

    async def _analyze_locked_async(self, survey_id: str) -> Analysis:
        survey = await asyncio.to_thread(self.store.find_survey_by_id, survey_id)
        if survey is None:
            raise NotFound(survey_id)

        count = len(survey.responses)
        threshold = self.config.min_sample_threshold
        if count < threshold:
            raise InsufficientSamples(count, threshold)

        if survey.analysis is not None:
            logger.info(
                f"Replacing analysis for survey {survey_id} "
                f"from {survey.analysis.created_at}"
            )

        result = await self.analyzer.analyze_async(survey.responses, survey.questions)
        analysis = await asyncio.to_thread(self.store.replace_analysis, survey_id, result)
        logger.info(
            f"Stored analysis for survey {survey_id}: {analysis.signal_strength} signal"
        )
        return analysis


__all__ = ["SurveyOrchestrator"]
