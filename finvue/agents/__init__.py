"""AI agents package."""

from finvue.agents.ai_agents import (
    AISuggestion,
    InsightAgent,
    headline_tip,
    rule_based_tips,
)

__all__ = [
    "AISuggestion",
    "InsightAgent",
    "headline_tip",
    "rule_based_tips",
]
