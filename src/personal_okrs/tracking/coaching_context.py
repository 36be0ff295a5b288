"""Coaching context — the OKR picture handed to the coach model.

Renders a markdown narrative plus a structured dict from already-loaded
periods, objectives and check-ins. No DB or LLM dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from personal_okrs.tracking.models import Objective, Period, WeeklyCheckIn
from personal_okrs.tracking.objective_summary import summarize_objective
from personal_okrs.tracking.period_math import PeriodContext
from personal_okrs.tracking.status import BEHIND, NEEDS_ATTENTION, ON_TRACK

EMPTY_SUMMARY = "No context available yet. Start by setting your objectives!"

_STATUS_MARKERS = {
    ON_TRACK: "[OK]",
    NEEDS_ATTENTION: "[!]",
    BEHIND: "[X]",
}

DEFAULT_COACH_PROMPT = """You are a supportive and insightful executive coach helping professionals achieve their goals through effective OKRs (Objectives and Key Results).

Your role is to:
- Help users reflect on their progress and challenges
- Ask thought-provoking questions that encourage self-discovery
- Provide actionable advice and frameworks when appropriate
- Celebrate wins and help reframe setbacks as learning opportunities
- Guide users to set realistic yet ambitious goals
- Encourage accountability and consistent progress

Your coaching style should be:
- Warm and encouraging, yet direct when needed
- Focused on asking questions before giving advice
- Data-informed, referencing their OKRs and check-ins
- Action-oriented, helping them identify concrete next steps
- Growth-minded, emphasizing learning and iteration

Keep your responses concise and focused. Ask one question at a time. Use the context provided about their objectives, key results, and recent reflections to make your coaching relevant and personalized."""


@dataclass
class CoachingContext:
    summary: str  # markdown narrative
    data: dict[str, Any] = field(default_factory=dict)


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_coaching_context(
    period: Period | None,
    objectives: list[Objective],
    check_ins: list[WeeklyCheckIn],
    context: PeriodContext,
    recent_check_ins: int = 3,
) -> CoachingContext:
    """Build the coaching context for a period.

    Args:
        period: The period being coached on, or None.
        objectives: Objectives of that period with key results loaded.
        check_ins: Check-ins of that period, any order.
        context: Period context used to compute key result statuses.
        recent_check_ins: How many of the newest check-ins to include.

    Returns:
        CoachingContext with the markdown summary and structured data.
    """
    data: dict[str, Any] = {}
    parts: list[str] = []

    if period is None:
        return CoachingContext(summary=EMPTY_SUMMARY, data=data)

    data["period_id"] = period.id
    data["period_name"] = period.name
    parts.append(f"## Current Period: {period.name}\n")
    parts.append(
        f"Period: {period.start_date.isoformat()} - {period.end_date.isoformat()} "
        f"(week {context.current_week} of {context.total_weeks})\n"
    )

    if objectives:
        data["objectives"] = []
        parts.append("\n## Objectives & Key Results\n")
        for objective in objectives:
            summary = summarize_objective(objective, context)
            data["objectives"].append({
                "id": objective.id,
                "title": objective.title,
                "description": objective.description or None,
                "status": summary.overall_status,
                "key_results": [
                    {
                        "id": snap.id,
                        "description": snap.description,
                        "target_value": snap.target_value,
                        "unit": snap.unit,
                        "current_progress": snap.current_value,
                        "status": snap.status,
                    }
                    for snap in summary.key_results
                ],
            })

            parts.append(f"\n### {objective.title}\n")
            if objective.description:
                parts.append(f"{objective.description}\n")
            for snap in summary.key_results:
                marker = _STATUS_MARKERS.get(snap.status, "[-]")
                parts.append(
                    f"- {marker} **{snap.description}**: "
                    f"{_format_number(snap.current_value)}/{_format_number(snap.target_value)} "
                    f"{snap.unit} ({snap.completion_pct:.0f}%)\n"
                )

    recent = sorted(check_ins, key=lambda ci: ci.week_start_date, reverse=True)
    recent = recent[:max(recent_check_ins, 0)]
    if recent:
        data["recent_check_ins"] = [
            {
                "week_start_date": ci.week_start_date.isoformat(),
                "reflection": {
                    "what_went_well": ci.reflection.what_went_well,
                    "what_didnt_go_well": ci.reflection.what_didnt_go_well,
                    "what_will_i_change": ci.reflection.what_will_i_change,
                },
            }
            for ci in recent
        ]
        parts.append("\n## Recent Check-Ins\n")
        for ci in recent:
            parts.append(f"\n### Week of {ci.week_start_date.isoformat()}\n")
            if ci.reflection.what_went_well:
                parts.append(f"**What went well:** {ci.reflection.what_went_well}\n\n")
            if ci.reflection.what_didnt_go_well:
                parts.append(f"**What didn't go well:** {ci.reflection.what_didnt_go_well}\n\n")
            if ci.reflection.what_will_i_change:
                parts.append(f"**What will I change:** {ci.reflection.what_will_i_change}\n\n")

    return CoachingContext(summary="".join(parts) or EMPTY_SUMMARY, data=data)


def concise_summary(data: dict[str, Any]) -> str:
    """One-line description of a context, stored alongside coaching sessions."""
    parts = []
    if data.get("period_name"):
        parts.append(f"Period: {data['period_name']}")

    objectives = data.get("objectives") or []
    if objectives:
        parts.append(f"{len(objectives)} objective(s)")
        total_krs = sum(len(o.get("key_results") or []) for o in objectives)
        parts.append(f"{total_krs} key result(s)")

    check_ins = data.get("recent_check_ins") or []
    if check_ins:
        parts.append(f"{len(check_ins)} recent check-in(s)")

    return " | ".join(parts) or "No context"


def coach_prompt(settings) -> str:
    """Configured coach prompt, falling back to the built-in default."""
    return (settings.coach_prompt or "").strip() or DEFAULT_COACH_PROMPT
