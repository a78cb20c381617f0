"""
Persistence boundary for surveys, responses and analyses.

The pipeline only talks to `SurveyStore`. `JsonFileSurveyStore` keeps one
directory per survey under `<data_dir>/surveys/`:

    surveys/<id>/survey.json
    surveys/<id>/responses.json
    surveys/<id>/analysis.json
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional

from .datamodel import Analysis, AnalysisResult, Response, Survey
from .errors import DuplicateAnalysis, NotFound

logger = logging.getLogger(__name__)


class SurveyStore(ABC):
    """The narrow create/read/delete contract the orchestrator depends on."""

    @abstractmethod
    def create_survey(self, survey: Survey) -> Survey: ...

    @abstractmethod
    def find_survey_by_id(self, survey_id: str) -> Optional[Survey]:
        """Return the survey with responses and analysis attached, or None."""

    @abstractmethod
    def list_surveys(self) -> List[Survey]:
        """Surveys without responses attached, newest first."""

    @abstractmethod
    def create_response(self, response: Response) -> Response: ...

    @abstractmethod
    def count_responses(self, survey_id: str) -> int: ...

    @abstractmethod
    def find_analysis(self, survey_id: str) -> Optional[Analysis]: ...

    @abstractmethod
    def create_analysis(self, survey_id: str, result: AnalysisResult) -> Analysis:
        """Insert an analysis; raises DuplicateAnalysis if one exists."""

    @abstractmethod
    def delete_analysis(self, survey_id: str) -> None: ...

    def replace_analysis(self, survey_id: str, result: AnalysisResult) -> Analysis:
        """Drop any existing analysis for the survey and store `result`."""
        self.delete_analysis(survey_id)
        return self.create_analysis(survey_id, result)


class JsonFileSurveyStore(SurveyStore):
    """File-backed store; every write is a temp file renamed into place."""

    def __init__(self, data_dir: str = "outputs"):
        self.root = Path(data_dir) / "surveys"
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _survey_dir(self, survey_id: str) -> Path:
        # Ids become directory names; refuse anything that could escape root.
        if not survey_id or "/" in survey_id or "\\" in survey_id or survey_id in {".", ".."}:
            raise NotFound(survey_id)
        return self.root / survey_id

    @staticmethod
    def _read_json(path: Path, default: Any = None) -> Any:
        if not path.exists():
            return default
        with open(path, "r") as f:
            return json.load(f)

    @staticmethod
    def _write_json(path: Path, data: Any):
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def create_survey(self, survey: Survey) -> Survey:
        with self._lock:
            survey_dir = self._survey_dir(survey.id)
            survey_dir.mkdir(parents=True, exist_ok=False)
            self._write_json(survey_dir / "survey.json", survey.to_dict())
            self._write_json(survey_dir / "responses.json", [])
        logger.info(f"Created survey {survey.id} ({len(survey.questions)} questions)")
        return survey

    def find_survey_by_id(self, survey_id: str) -> Optional[Survey]:
        try:
            survey_dir = self._survey_dir(survey_id)
        except NotFound:
            return None
        with self._lock:
            data = self._read_json(survey_dir / "survey.json")
            if data is None:
                return None
            survey = Survey.from_dict(data)
            survey.responses = self._load_responses(survey_dir)
            survey.analysis = self._load_analysis(survey_dir)
        return survey

    def list_surveys(self) -> List[Survey]:
        surveys = []
        with self._lock:
            for path in self.root.glob("*/survey.json"):
                surveys.append(Survey.from_dict(self._read_json(path)))
        surveys.sort(
            key=lambda s: s.created_at.isoformat() if s.created_at else "", reverse=True
        )
        return surveys

    def _load_responses(self, survey_dir: Path) -> List[Response]:
        return [Response.from_dict(r) for r in self._read_json(survey_dir / "responses.json", [])]

    def _load_analysis(self, survey_dir: Path) -> Optional[Analysis]:
        data = self._read_json(survey_dir / "analysis.json")
        return Analysis.from_dict(data) if data else None

    def _existing_dir(self, survey_id: str) -> Path:
        survey_dir = self._survey_dir(survey_id)
        if not (survey_dir / "survey.json").exists():
            raise NotFound(survey_id)
        return survey_dir

    def create_response(self, response: Response) -> Response:
        with self._lock:
            survey_dir = self._existing_dir(response.survey_id)
            rows = self._read_json(survey_dir / "responses.json", [])
            rows.append(response.to_dict())
            self._write_json(survey_dir / "responses.json", rows)
        return response

    def count_responses(self, survey_id: str) -> int:
        with self._lock:
            survey_dir = self._existing_dir(survey_id)
            return len(self._read_json(survey_dir / "responses.json", []))

    def find_analysis(self, survey_id: str) -> Optional[Analysis]:
        with self._lock:
            return self._load_analysis(self._existing_dir(survey_id))

    def create_analysis(self, survey_id: str, result: AnalysisResult) -> Analysis:
        with self._lock:
            survey_dir = self._existing_dir(survey_id)
            if (survey_dir / "analysis.json").exists():
                raise DuplicateAnalysis(survey_id)
            analysis = Analysis.from_result(survey_id, result)
            self._write_json(survey_dir / "analysis.json", analysis.to_dict())
        return analysis

    def delete_analysis(self, survey_id: str) -> None:
        with self._lock:
            path = self._existing_dir(survey_id) / "analysis.json"
            if path.exists():
                path.unlink()

    def replace_analysis(self, survey_id: str, result: AnalysisResult) -> Analysis:
        # Single rename over the old file: readers see the old or the new
        # analysis, never none.
        with self._lock:
            survey_dir = self._existing_dir(survey_id)
            analysis = Analysis.from_result(survey_id, result)
            self._write_json(survey_dir / "analysis.json", analysis.to_dict())
        return analysis


__all__ = ["SurveyStore", "JsonFileSurveyStore"]
