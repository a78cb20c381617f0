import csv
import io

from .datamodel import Survey


def export_responses_csv(survey: Survey) -> str:
    """
    Render a survey's responses as CSV.

    Header: Response ID, Completed At, Prolific PID, then `Q{n}: {text}` per
    question. Every field is quoted; embedded quotes are doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(
        ["Response ID", "Completed At", "Prolific PID"]
        + [f"Q{i + 1}: {q.text}" for i, q in enumerate(survey.questions)]
    )
    for response in survey.responses:
        writer.writerow(
            [
                response.id,
                response.completed_at.isoformat() if response.completed_at else "",
                response.prolific_pid or "",
            ]
            + [a.answer for a in response.answers]
        )
    return buffer.getvalue().rstrip("\n")


__all__ = ["export_responses_csv"]
