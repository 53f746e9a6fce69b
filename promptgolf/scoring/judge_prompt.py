"""
Judge prompt compiler.

Turns a ChallengeConfig into the system instructions for the LLM judge.
The output is a pure function of the challenge: no timestamps, no
randomness, so the same challenge always compiles to the same text.
"""

import json
import math
from typing import List, Sequence, Tuple

from ..challenges.schema import ChallengeConfig, ScoringDimension

# (tier, lower fraction, upper fraction) of a dimension's maxPoints
RUBRIC_BANDS = (
    ("excellent", 0.9, 1.0),
    ("good", 0.7, 0.89),
    ("fair", 0.5, 0.69),
    ("poor", 0.0, 0.49),
)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round() would go to even)."""
    return int(math.floor(value + 0.5))


def rubric_bands(max_points: int) -> List[Tuple[str, int, int]]:
    """Point range for each rubric tier of a dimension."""
    bands = []
    for tier, low, high in RUBRIC_BANDS:
        lower = 0 if low == 0 else round_half_up(max_points * low)
        upper = max_points if high == 1.0 else round_half_up(max_points * high)
        bands.append((tier, lower, upper))
    return bands


def format_dimension_rubric(dim: ScoringDimension) -> str:
    lines = [
        f"### {dim.name} (id: `{dim.id}`, {dim.max_points} points, {dim.weight}% weight)",
        dim.description.strip(),
        "",
        "**Rubric:**",
    ]
    for tier, lower, upper in rubric_bands(dim.max_points):
        lines.append(f"- {tier.capitalize()} ({lower}-{upper} pts): {getattr(dim.rubric, tier).strip()}")
    return "\n".join(lines)


def _bullets(title: str, items: Sequence[str]) -> str:
    return f"**{title}:**\n" + "\n".join(f"- {item}" for item in items)


def output_schema(challenge: ChallengeConfig) -> str:
    """The JSON shape the judge must return, keyed by the configured dimension ids."""
    scoring = challenge.scoring
    dimension_lines = []
    for dim in scoring.dimensions:
        dimension_lines.append(
            f"    {json.dumps(dim.id)}: {{\n"
            f"      \"score\": <number 0-{dim.max_points}>,\n"
            f"      \"feedback\": \"<1-2 sentence specific feedback>\"\n"
            f"    }}"
        )
    return (
        "{\n"
        f"  \"totalScore\": <number 0-{scoring.max_score}>,\n"
        "  \"dimensions\": {\n"
        + ",\n".join(dimension_lines) + "\n"
        "  },\n"
        "  \"overallFeedback\": {\n"
        "    \"whatYouDidWell\": \"<1-2 sentences on strengths>\",\n"
        "    \"primaryImprovement\": \"<The single most impactful change they could make>\",\n"
        "    \"secondaryImprovement\": \"<Optional second suggestion>\"\n"
        "  },\n"
        "  \"promptQualityLevel\": \"<'excellent' | 'good' | 'fair' | 'poor'>\"\n"
        "}"
    )


def compile_judge_prompt(challenge: ChallengeConfig) -> str:
    """
    Build the judge's system instructions for a challenge.

    If the challenge sets scoring.judge.systemPromptOverride, it is returned
    verbatim and nothing is compiled.
    """
    override = challenge.scoring.judge.system_prompt_override
    if override is not None:
        return override

    meta = challenge.metadata
    scenario = challenge.content.scenario
    criteria = challenge.content.success_criteria
    scoring = challenge.scoring

    sections = [
        "You are an expert prompt engineering evaluator for a training platform called \"Prompt Golf.\"",
        "Your job is to score a user's prompt for a specific challenge. You evaluate the PROMPT QUALITY, "
        "not the AI's hypothetical response.",
        "## CHALLENGE CONTEXT",
        f"**Title:** {meta.title}\n**Category:** {meta.category}\n**Difficulty:** {meta.difficulty}/5",
        f"**Scenario:**\n{scenario.headline.strip()}",
        scenario.context.strip(),
    ]
    if scenario.constraints:
        sections.append(_bullets("Constraints", scenario.constraints))
    if scenario.persona:
        sections.append(f"**User's Role:** {scenario.persona}")

    sections.append(f"**Success Criteria:**\n{criteria.ideal_outcome.strip()}")
    if criteria.must_include:
        sections.append(_bullets("Must Include", criteria.must_include))
    if criteria.must_avoid:
        sections.append(_bullets("Must Avoid", criteria.must_avoid))

    sections.append("## SCORING DIMENSIONS")
    sections.append(f"Total possible score: {scoring.max_score} points")
    sections.extend(format_dimension_rubric(dim) for dim in scoring.dimensions)

    dimension_keys = ", ".join(f"\"{dim.id}\"" for dim in scoring.dimensions)
    sections.extend([
        "## YOUR TASK",
        "Evaluate the user's prompt and return a JSON response with this exact structure:",
        f"```json\n{output_schema(challenge)}\n```",
        f"The \"dimensions\" object MUST contain exactly these keys: {dimension_keys}. "
        "Do not rename, add or drop keys.",
        "## IMPORTANT GUIDELINES",
        "\n".join([
            "1. Be encouraging but honest. This is a learning tool.",
            "2. Focus feedback on ACTIONABLE improvements.",
            "3. Reference specific parts of their prompt in feedback.",
            "4. Consider the difficulty level - score appropriately for the challenge tier.",
            f"5. A \"passing\" prompt ({scoring.thresholds.passing}+ points) should be usable but not optimal.",
            f"6. An \"excellent\" prompt ({scoring.thresholds.excellent}+ points) should be professional-grade.",
            f"7. totalScore must not exceed {scoring.max_score}.",
        ]),
        "Return ONLY the JSON. No markdown formatting around it.",
    ])
    return "\n\n".join(sections)
