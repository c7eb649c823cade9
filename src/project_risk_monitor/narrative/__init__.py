from __future__ import annotations

import logging
from typing import Sequence

from ..errors import CollaboratorError
from ..models import PortfolioSummary, ProjectInfo, RiskAssessment
from .client import NarrativeClient, OpenAINarrativeClient
from .prompts import INSIGHT_SYSTEM_PROMPT, build_insight_prompt

logger = logging.getLogger(__name__)


def request_insight(
    client: NarrativeClient | None,
    project: ProjectInfo,
    summary: PortfolioSummary,
    ranked: Sequence[RiskAssessment],
) -> str | None:
    """Ask the narrative collaborator for an insight; any failure means no insight."""
    if client is None:
        return None
    prompt = build_insight_prompt(project, summary, ranked)
    try:
        text = client.generate(INSIGHT_SYSTEM_PROMPT, prompt)
    except CollaboratorError as exc:
        logger.warning("Narrative insight unavailable: %s", exc)
        return None
    except Exception:
        logger.exception("Narrative insight request failed unexpectedly")
        return None
    text = (text or "").strip()
    return text or None


__all__ = [
    "INSIGHT_SYSTEM_PROMPT",
    "NarrativeClient",
    "OpenAINarrativeClient",
    "build_insight_prompt",
    "request_insight",
]
