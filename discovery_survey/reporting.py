from pathlib import Path
from typing import Dict, List

from .datamodel import Analysis, Question, Survey

PASS_THRESHOLD = 80.0


def summarize_question_review(questions: List[Question]) -> Dict:
    """Average Mom Test score across reviewed questions and whether it clears 80."""
    if not questions:
        return {"count": 0, "average_score": 0.0, "passed": False, "flagged": []}
    average = sum(q.mom_test_score for q in questions) / len(questions)
    flagged = [
        {"position": i + 1, "text": q.text, "issues": list(q.issues)}
        for i, q in enumerate(questions)
        if q.issues
    ]
    return {
        "count": len(questions),
        "average_score": round(average, 1),
        "passed": average >= PASS_THRESHOLD,
        "flagged": flagged,
    }


def question_review_markdown(questions: List[Question]) -> str:
    summary = summarize_question_review(questions)
    lines = ["# Question Review\n"]
    for i, q in enumerate(questions):
        lines.append(f"{i + 1}. {q.text}")
        lines.append(f"   - Score: {q.mom_test_score}/100")
        if q.issues:
            lines.append(f"   - Issues: {', '.join(q.issues)}")
    verdict = (
        "Pass: questions meet the 80-point threshold"
        if summary["passed"]
        else "Warning: questions below the 80-point threshold"
    )
    lines.append(f"\n**Average Score:** {summary['average_score']}/100 ({verdict})")
    return "\n".join(lines) + "\n"


def analysis_markdown(survey: Survey, analysis: Analysis) -> str:
    def bullets(items: List[str]) -> str:
        return "\n".join(f"- {it}" for it in items) if items else "- (none)"

    created = analysis.created_at.strftime("%Y-%m-%d %H:%M:%S") if analysis.created_at else "n/a"
    return (
        f"# Pain Signal Analysis - {survey.title}\n\n"
        f"**Audience:** {survey.audience}\n"
        f"**Hypothesis:** {survey.hypothesis}\n"
        f"**Responses:** {len(survey.responses)}\n"
        f"**Analyzed:** {created}\n\n"
        f"## Verdict\n\n"
        f"- Signal strength: {analysis.signal_strength}\n"
        f"- Pain frequency: {analysis.pain_frequency}%\n"
        f"- Pain intensity: {analysis.pain_intensity}\n"
        f"- Confidence: {analysis.confidence}\n\n"
        f"## Recommendation\n\n{analysis.recommendation}\n\n"
        f"## Key Quotes\n\n{bullets([f'“{q}”' for q in analysis.key_quotes])}\n\n"
        f"## Current Workarounds\n\n{bullets(analysis.current_workarounds)}\n\n"
        f"## Reasoning\n\n{analysis.reasoning}\n"
    )


def write_analysis_report(survey: Survey, analysis: Analysis, out_dir: str) -> Path:
    base_dir = Path(out_dir)
    base_dir.mkdir(parents=True, exist_ok=True)
    path = base_dir / "analysis.md"
    path.write_text(analysis_markdown(survey, analysis))
    return path


__all__ = [
    "PASS_THRESHOLD",
    "summarize_question_review",
    "question_review_markdown",
    "analysis_markdown",
    "write_analysis_report",
]
