#!/usr/bin/env python3
"""
Discovery Survey CLI - author Mom Test questions, collect answers and
analyze them for pain signals.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import load_settings
from .datamodel import Answer
from .errors import SurveyAIError, ValidationError
from .export import export_responses_csv
from .orchestrator import SurveyOrchestrator
from .reporting import question_review_markdown, write_analysis_report
from .synthetic import SyntheticAnswerGenerator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Discovery Survey - Mom Test question authoring and pain-signal analysis."
    )
    parser.add_argument("--config", type=str, help="Path to a JSON config file")
    parser.add_argument(
        "--api-key", type=str, help="OpenAI API key (optional, overrides .env)"
    )
    parser.add_argument(
        "--set-jsonl-logging",
        action="store_true",
        help="Enable JSONL request/response logging for this run (writes requests.jsonl).",
    )
    parser.add_argument(
        "--generate",
        action="store_true",
        help="Generate and review questions for --audience and --hypothesis.",
    )
    parser.add_argument("--audience", type=str, help="Target audience description")
    parser.add_argument("--hypothesis", type=str, help="Problem hypothesis to test")
    parser.add_argument(
        "--title", type=str, help="With --generate, also create a survey with this title"
    )
    parser.add_argument("--analyze", metavar="SURVEY_ID", help="Analyze (or re-analyze) a survey")
    parser.add_argument("--export", metavar="SURVEY_ID", help="Export a survey's responses as CSV")
    parser.add_argument("--output", type=str, help="Output path for --export")
    parser.add_argument(
        "--list", action="store_true", help="List surveys with their response counts"
    )
    parser.add_argument(
        "--synthetic-responses",
        metavar="SURVEY_ID",
        help="Submit model-generated test responses to a survey (non-production).",
    )
    parser.add_argument(
        "--count", type=int, default=5, help="Number of synthetic responses (default: 5)"
    )
    return parser


async def _run_generate(orchestrator: SurveyOrchestrator, args) -> None:
    if not args.audience or not args.hypothesis:
        raise ValidationError(["--generate requires --audience and --hypothesis"])
    print("🧠 Generating and reviewing questions...")
    questions = await orchestrator.author_async(args.audience, args.hypothesis)
    print(question_review_markdown(questions))
    if args.title:
        survey = orchestrator.create_survey(
            args.title, args.audience, args.hypothesis, questions
        )
        print(f"✅ Survey created: {survey.id}")
        print(f"   Completion code: {survey.completion_code}")


async def _run_analyze(orchestrator: SurveyOrchestrator, survey_id: str) -> None:
    print(f"🔍 Analyzing survey {survey_id}...")
    analysis = await orchestrator.analyze_or_replace_async(survey_id)
    survey = orchestrator.get_survey(survey_id)
    report_path = write_analysis_report(
        survey, analysis, str(Path(orchestrator.config.data_dir) / "reports" / survey_id)
    )
    print(f"✅ Signal: {analysis.signal_strength} (confidence {analysis.confidence})")
    print(f"   {analysis.recommendation}")
    print(f"   Report: {report_path}")


async def _run_list(orchestrator: SurveyOrchestrator) -> None:
    surveys = orchestrator.list_surveys()
    if not surveys:
        print("No surveys found.")
        return
    counts = await orchestrator.response_counts_async([s.id for s in surveys])
    for survey in surveys:
        print(f"{survey.id}  {counts[survey.id]:>4} responses  {survey.title}")


async def _run_synthetic(orchestrator: SurveyOrchestrator, survey_id: str, count: int) -> None:
    survey = orchestrator.get_survey(survey_id)
    helper = SyntheticAnswerGenerator(orchestrator.gateway, orchestrator.config)
    texts = [q.text for q in survey.questions]
    submitted = 0
    for i in range(count):
        answers = await helper.generate_answers_async(texts, survey.audience, survey.hypothesis)
        try:
            orchestrator.submit_response(
                survey_id,
                [Answer(question=q, answer=a) for q, a in zip(texts, answers)],
                prolific_pid=f"synthetic-{i + 1}",
            )
            submitted += 1
        except ValidationError as e:
            logger.warning(f"Synthetic response {i + 1} rejected: {e}")
    print(f"✅ Submitted {submitted}/{count} synthetic responses")


def _export(orchestrator: SurveyOrchestrator, survey_id: str, output: Optional[str]) -> None:
    csv_text = export_responses_csv(orchestrator.get_survey(survey_id))
    if output:
        Path(output).write_text(csv_text)
        print(f"✅ Exported responses to {output}")
    else:
        print(csv_text)


def main(argv=None):
    """Main entry point"""
    logging.basicConfig(level=logging.INFO)
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_settings(args.config)
        if args.set_jsonl_logging:
            config.enable_jsonl_logging = True
        orchestrator = SurveyOrchestrator(config=config, api_key=args.api_key)

        if args.generate:
            asyncio.run(_run_generate(orchestrator, args))
        elif args.analyze:
            asyncio.run(_run_analyze(orchestrator, args.analyze))
        elif args.export:
            _export(orchestrator, args.export, args.output)
        elif args.synthetic_responses:
            asyncio.run(_run_synthetic(orchestrator, args.synthetic_responses, args.count))
        elif args.list:
            asyncio.run(_run_list(orchestrator))
        else:
            parser.print_help()
    except KeyboardInterrupt:
        print("\n\n👋 Cancelled by user.")
    except (SurveyAIError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
