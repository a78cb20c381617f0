"""Prompt text for each pipeline stage."""

from typing import List, Sequence

MOM_TEST_PRINCIPLES = """The Mom Test principles:
1. Talk about their life, not your idea
2. Ask about specifics in the past, not generics or the future
3. Talk less, listen more
4. Ask about concrete facts and behaviors, not hypotheticals"""

GENERATOR_SYSTEM_PROMPT = (
    "You are an expert at creating Mom Test questions. Return only valid JSON."
)
CRITIC_SYSTEM_PROMPT = (
    "You are an expert at evaluating Mom Test questions. Return only valid JSON."
)
ANALYZER_SYSTEM_PROMPT = (
    "You are an expert at analyzing customer research. Return only valid JSON."
)
SYNTHETIC_SYSTEM_PROMPT = (
    "You are a helpful assistant that generates realistic survey responses. "
    "Return only valid JSON."
)


def build_generation_prompt(audience: str, hypothesis: str, count: int = 8) -> str:
    return f"""You are an expert at creating Mom Test questions for customer discovery interviews.

{MOM_TEST_PRINCIPLES}

Given a target audience and problem hypothesis, generate {count} questions that follow these principles.

Target Audience: {audience}
Problem Hypothesis: {hypothesis}

Generate {count} questions that:
- Focus on past behavior and specific stories
- Avoid leading questions or pitching the solution
- Dig into their current workflow and pain points
- Ask about money/time they've spent on this problem
- Explore workarounds they've tried

Return ONLY a JSON object with this structure:
{{
  "questions": [
    {{
      "text": "question text",
      "rationale": "why this question follows Mom Test principles"
    }}
  ]
}}"""


def build_critique_prompt(question_texts: Sequence[str]) -> str:
    numbered = "\n".join(f"{i + 1}. {text}" for i, text in enumerate(question_texts))
    return f"""You are an expert at evaluating customer discovery questions using the Mom Test framework.

{MOM_TEST_PRINCIPLES}

Evaluate each question and identify issues:
- Leading: Does it pitch the idea or suggest an answer?
- Hypothetical: Does it ask about future behavior instead of past?
- Vague: Is it too general instead of asking for specific stories?
- Good: Follows Mom Test principles well

Questions to evaluate:
{numbered}

For each question, in the same order, return a score (0-100) and a list of issues.
Copy each question's text back exactly as given.

Return ONLY a JSON object with this structure:
{{
  "critiques": [
    {{
      "text": "original question",
      "score": 85,
      "issues": ["leading"]
    }}
  ]
}}"""


def build_analysis_prompt(
    question_texts: Sequence[str], rendered_responses: List[str]
) -> str:
    questions = "\n".join(f"Q{i + 1}: {text}" for i, text in enumerate(question_texts))
    responses = "\n\n".join(rendered_responses)
    return f"""You are an expert at analyzing customer research responses to identify genuine pain signals.

Analyze the following survey responses to determine if there is a real, valuable problem worth solving.

Survey Questions:
{questions}

Survey Responses (n={len(rendered_responses)}):
{responses}

Analyze the responses for:

1. **Pain Frequency**: What % of respondents mentioned this pain point?
2. **Pain Intensity**: How severe is the problem? (high/medium/low)
   - High: Using words like "frustrated", "hate", "waste", spending money/time
   - Medium: Mentions inconvenience or difficulty
   - Low: Casual mentions, no strong emotion

3. **Current Workarounds**: What hacks/solutions are they using now?
4. **Key Quotes**: Most revealing statements (exact quotes)
5. **Signal Strength**:
   - Strong: >60% frequency + high intensity + people spending money/time
   - Weak: 30-60% frequency OR medium intensity
   - None: <30% frequency OR low intensity

6. **Recommendation**: Should we build this? Why or why not?

Return ONLY a JSON object with this structure:
{{
  "signalStrength": "strong" | "weak" | "none",
  "painFrequency": 0-100,
  "painIntensity": "high" | "medium" | "low",
  "keyQuotes": ["quote 1", "quote 2"],
  "currentWorkarounds": ["workaround 1"],
  "recommendation": "clear recommendation text",
  "confidence": "high" | "medium" | "low",
  "reasoning": "explanation of the analysis"
}}"""


def build_synthetic_answers_prompt(
    question_texts: Sequence[str], audience: str, hypothesis: str
) -> str:
    numbered = "\n".join(f"{i + 1}. {text}" for i, text in enumerate(question_texts))
    return f"""You are roleplaying as someone from this target audience: "{audience}"

The survey is testing this hypothesis: "{hypothesis}"

Generate realistic, detailed survey responses for the following questions. Each answer should:
- Be 80-150 characters long
- Sound authentic and personal (use "I" statements)
- Be specific and detailed (not generic)
- Relate to the target audience's real experiences

Questions:
{numbered}

Return ONLY a JSON object with this structure:
{{
  "answers": ["answer 1", "answer 2"]
}}"""
