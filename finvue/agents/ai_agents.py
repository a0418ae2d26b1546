"""
AI Agents for FinVue Ledger

DESIGN DECISION: The insight agent only ever sees figures computed by the
aggregation engine (approved, non-requisition transactions the viewer may
see). It turns them into short tips; it never answers from its own
knowledge and never writes anything.

CRITICAL BOUNDARIES:

1. INSIGHT AGENT:
   - CAN: Comment on spending patterns in the data it is given
   - CAN: Suggest where to save
   - CANNOT: Invent figures that are not in the input
   - CANNOT: Change the ledger

2. FALLBACK:
   - When Gemini is not configured, fails, or answers with something
     that is not the expected JSON, a deterministic rule-based set of
     tips is returned instead. The dashboard always has a headline.

The LLM is a COMMENTATOR, not a BOOKKEEPER.
"""

import json
from collections import defaultdict
from decimal import Decimal
from typing import Any, Literal, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field, ValidationError

from finvue.config import GeminiSettings, get_settings
from finvue.models.ledger import Transaction, TransactionType


MAX_TIPS = 3
MAX_PROMPT_TRANSACTIONS = 50


class AISuggestion(BaseModel):
    """One tip shown on the dashboard or the insights page."""

    tip: str = Field(..., min_length=1, max_length=300)
    type: Literal["saving", "warning", "info"] = "info"


def _totals(transactions: list[Transaction]) -> tuple[Decimal, Decimal, dict[str, Decimal]]:
    income = Decimal("0")
    expenses = Decimal("0")
    by_category: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for t in transactions:
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expenses += t.amount
            by_category[t.category] += t.amount
    return income, expenses, dict(by_category)


def rule_based_tips(transactions: list[Transaction]) -> list[AISuggestion]:
    """Tips derived with plain arithmetic, used when the model is unavailable."""
    if not transactions:
        return [AISuggestion(
            tip="Start recording transactions to get personalized insights.",
            type="info",
        )]

    income, expenses, by_category = _totals(transactions)
    tips = []

    if expenses > income:
        tips.append(AISuggestion(
            tip=f"Expenses exceed income by {expenses - income:,.2f}. Review recent spending.",
            type="warning",
        ))

    if by_category and expenses > 0:
        top_name, top_value = max(by_category.items(), key=lambda item: item[1])
        share = top_value / expenses * 100
        if share >= 40:
            tips.append(AISuggestion(
                tip=f"{top_name} makes up {share:.0f}% of spending. Look for savings there first.",
                type="saving",
            ))
        else:
            tips.append(AISuggestion(
                tip=f"Your largest expense category is {top_name} at {top_value:,.2f}.",
                type="info",
            ))

    if income > 0 and expenses <= income:
        saved = (income - expenses) / income * 100
        tips.append(AISuggestion(
            tip=f"You are keeping {saved:.0f}% of income. Keep it up.",
            type="saving" if saved >= 20 else "info",
        ))

    return tips[:MAX_TIPS]


class InsightAgent:
    """
    AI agent for the dashboard tips.

    RESPONSIBILITIES:
    - Summarize the approved ledger into a prompt
    - Parse the model's JSON answer into AISuggestion objects

    BOUNDARIES:
    - Sees only what the caller passes in
    - Falls back to rule_based_tips on any failure
    """

    def __init__(self, model: Any = None, settings: Optional[GeminiSettings] = None):
        """
        Args:
            model: Anything with an async generate_content_async(prompt).
                   When None, a Gemini model is configured from settings
                   if an API key is available.
        """
        self._logger = structlog.get_logger()
        self._model = model
        if self._model is None:
            self._model = self._configure_genai(settings)

    def _configure_genai(self, settings: Optional[GeminiSettings]) -> Any:
        """Configure Google Generative AI, or return None if not set up."""
        if settings is None:
            try:
                settings = get_settings().gemini
            except ValidationError:
                self._logger.info("gemini_not_configured")
                return None

        genai.configure(api_key=settings.api_key)
        return genai.GenerativeModel(
            model_name=settings.model_name,
            generation_config={
                "temperature": settings.temperature,
                "max_output_tokens": settings.max_tokens,
            }
        )

    @property
    def is_configured(self) -> bool:
        return self._model is not None

    def build_prompt(self, transactions: list[Transaction]) -> str:
        income, expenses, by_category = _totals(transactions)
        categories = "\n".join(
            f"- {name}: {value:.2f}"
            for name, value in sorted(by_category.items(), key=lambda i: i[1], reverse=True)
        ) or "- none"
        recent = "\n".join(
            f"- {t.date.isoformat()} {t.type.value} {t.category} {t.amount:.2f} via {t.source.value}"
            + (f" ({t.note})" if t.note else "")
            for t in transactions[:MAX_PROMPT_TRANSACTIONS]
        )

        return f"""You are a financial analyst for a small business ledger.

Totals (approved entries only):
- Income: {income:.2f}
- Expenses: {expenses:.2f}

Expenses by category:
{categories}

Recent transactions:
{recent}

Give at most {MAX_TIPS} short, practical tips based ONLY on the figures above.
Do not invent numbers.

Respond with ONLY a JSON array in this exact format:
[{{"tip": "one sentence", "type": "saving"}}]

"type" must be one of: saving, warning, info."""

    def parse_tips(self, text: str) -> list[AISuggestion]:
        """
        Extract tips from the model's answer.

        Raises:
            ValueError: No JSON array, or nothing usable in it
        """
        start = text.find("[")
        end = text.rfind("]") + 1
        if start < 0 or end <= start:
            raise ValueError("No JSON array in model response")

        data = json.loads(text[start:end])
        tips = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                tips.append(AISuggestion(**item))
            except ValidationError:
                continue
        if not tips:
            raise ValueError("Model response contained no valid tips")
        return tips[:MAX_TIPS]

    async def get_tips(self, transactions: list[Transaction]) -> list[AISuggestion]:
        """
        Tips for the given transactions, headline first.

        Never raises: falls back to rule-based tips.
        """
        if not transactions or self._model is None:
            return rule_based_tips(transactions)

        try:
            response = await self._model.generate_content_async(self.build_prompt(transactions))
            tips = self.parse_tips(response.text.strip())
            self._logger.info("ai_tips_generated", count=len(tips))
            return tips
        except Exception as e:
            self._logger.warning("ai_tips_fallback", error=str(e))
            return rule_based_tips(transactions)


def headline_tip(tips: list[AISuggestion]) -> Optional[AISuggestion]:
    """The tip shown on the dashboard banner."""
    return tips[0] if tips else None
