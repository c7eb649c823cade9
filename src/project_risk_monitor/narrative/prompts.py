from __future__ import annotations

from typing import Sequence

from ..core.factors import FACTOR_LABELS
from ..models import PortfolioSummary, ProjectInfo, RiskAssessment
from ..reporting.assembler import delay_status, format_money

INSIGHT_SYSTEM_PROMPT = (
    "You are an expert project management consultant specializing in schedule risk analysis "
    "and recovery strategies. Provide concise, actionable executive insights."
)
PROMPT_TOP_RISKS = 5


def build_insight_prompt(
    project: ProjectInfo,
    summary: PortfolioSummary,
    ranked: Sequence[RiskAssessment],
) -> str:
    lines = [
        "Analyze this project's schedule risk portfolio and provide an executive summary.",
        "",
        f"Project: {project.name or 'Unknown Project'}",
        f"Budget: {format_money(project.budget) if project.budget is not None else 'N/A'}",
        f"Duration: {project.duration or 'N/A'}",
        f"Total Activities: {summary.total_activities}",
        f"Critical Path Activities: {summary.critical_path_count}",
        (
            f"Risk Distribution: Critical({summary.critical_count}), High({summary.high_count}), "
            f"Medium({summary.medium_count}), Low({summary.low_count})"
        ),
        f"Total EMV: {format_money(summary.total_emv)}",
        f"Total Delay: {summary.total_delay_days:g} days",
        "",
        "Top risks:",
    ]
    for item in ranked[:PROMPT_TOP_RISKS]:
        activity = item.activity
        factor_text = ", ".join(
            f"{FACTOR_LABELS.get(name, name)}={value:.0f}%" for name, value in item.factors.items()
        )
        lines.append(
            f"- {activity.id} {activity.name}: score {item.risk_score:.0f}/100 ({item.severity.label}), "
            f"{delay_status(item)}, critical path {'Yes' if activity.is_critical_path else 'No'}, "
            f"float {activity.total_float if activity.total_float is not None else 'N/A'} days, "
            f"allocation {activity.fte_allocation:.0f}%, EMV {format_money(activity.emv)}"
        )
        lines.append(f"  Factors: {factor_text}")
    lines.extend(
        [
            "",
            "Provide a concise executive summary with:",
            "1. SITUATION: What's happening (2-3 sentences)",
            "2. BUSINESS IMPACT: Financial and timeline impact (specific numbers)",
            "3. RECOMMENDED ACTIONS: 2-3 specific actions with cost estimates and expected ROI",
            "4. URGENCY LEVEL: How quickly action is needed",
            "",
            "Keep it under 350 words and use bullet points.",
        ]
    )
    return "\n".join(lines)
