from typing import List, Optional, Sequence

from .datamodel import Answer, Question
from .errors import ValidationError


def _min_length(errors: List[str], field: str, value: Optional[str], minimum: int, label: str):
    if value is None or len(value.strip()) < minimum:
        errors.append(f"{field}: {label} must be at least {minimum} characters")


def validate_authoring_input(audience: str, hypothesis: str):
    errors: List[str] = []
    _min_length(errors, "audience", audience, 10, "Audience description")
    _min_length(errors, "hypothesis", hypothesis, 10, "Hypothesis")
    if errors:
        raise ValidationError(errors)


def validate_survey_input(
    title: str, audience: str, hypothesis: str, questions: Sequence[Question]
):
    errors: List[str] = []
    _min_length(errors, "title", title, 3, "Title")
    _min_length(errors, "audience", audience, 10, "Audience description")
    _min_length(errors, "hypothesis", hypothesis, 10, "Hypothesis")
    if not questions:
        errors.append("questions: At least one question is required")
    for i, question in enumerate(questions or []):
        _min_length(errors, f"questions[{i}].text", question.text, 5, "Question")
        score = question.mom_test_score
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
            errors.append(f"questions[{i}].momTestScore: must be an integer in [0, 100]")
        if not isinstance(question.issues, list) or not all(
            isinstance(issue, str) for issue in question.issues
        ):
            errors.append(f"questions[{i}].issues: must be a list of strings")
    if errors:
        raise ValidationError(errors)


def validate_answers(
    answers: Sequence[Answer], question_texts: Sequence[str], min_answer_length: int = 50
):
    """Answers must mirror the survey's questions one-to-one, in order, and be substantive."""
    errors: List[str] = []
    if not answers:
        errors.append("answers: At least one answer is required")
    elif len(answers) != len(question_texts):
        errors.append(
            f"answers: expected {len(question_texts)} answers (one per question), "
            f"got {len(answers)}"
        )
    else:
        for i, (answer, text) in enumerate(zip(answers, question_texts)):
            if (answer.question or "").strip() != text.strip():
                errors.append(
                    f"answers[{i}].question: expected {text!r} (answers must follow question order)"
                )
    for i, answer in enumerate(answers or []):
        _min_length(errors, f"answers[{i}].answer", answer.answer, min_answer_length, "Answer")
    if errors:
        raise ValidationError(errors)


__all__ = ["validate_authoring_input", "validate_survey_input", "validate_answers"]
