"""Tests for the insight agent (Gemini is faked)."""

import asyncio

from finvue.agents import AISuggestion, InsightAgent, headline_tip, rule_based_tips
from finvue.models import TransactionType


class FakeResponse:

    def __init__(self, text):
        self.text = text


class FakeModel:

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


def sample(make_transaction):
    return [
        make_transaction(amount="1000", type=TransactionType.INCOME, category="Sales"),
        make_transaction(amount="600", category="Rent"),
        make_transaction(amount="100", category="Utilities"),
    ]


class TestInsightAgent:

    def test_parses_model_answer(self, make_transaction):
        model = FakeModel(
            'Here you go:\n[{"tip": "Rent is most of your spending.", "type": "saving"},'
            ' {"tip": "Income is steady.", "type": "info"}]'
        )
        tips = asyncio.run(InsightAgent(model=model).get_tips(sample(make_transaction)))
        assert [t.type for t in tips] == ["saving", "info"]
        assert "Rent: 600.00" in model.prompts[0]
        assert "Income: 1000.00" in model.prompts[0]

    def test_bad_items_are_skipped(self, make_transaction):
        model = FakeModel('[{"tip": "ok", "type": "warning"}, {"tip": "x", "type": "party"}, 3]')
        tips = asyncio.run(InsightAgent(model=model).get_tips(sample(make_transaction)))
        assert tips == [AISuggestion(tip="ok", type="warning")]

    def test_garbage_falls_back(self, make_transaction):
        transactions = sample(make_transaction)
        tips = asyncio.run(InsightAgent(model=FakeModel("no json here")).get_tips(transactions))
        assert tips == rule_based_tips(transactions)

    def test_model_error_falls_back(self, make_transaction):
        transactions = sample(make_transaction)
        agent = InsightAgent(model=FakeModel(error=RuntimeError("quota")))
        assert asyncio.run(agent.get_tips(transactions)) == rule_based_tips(transactions)

    def test_empty_input_skips_model(self):
        model = FakeModel("[]")
        tips = asyncio.run(InsightAgent(model=model).get_tips([]))
        assert model.prompts == []
        assert tips[0].type == "info"


class TestRuleBasedTips:

    def test_overspending_warning(self, make_transaction):
        tips = rule_based_tips([
            make_transaction(amount="100", type=TransactionType.INCOME, category="Sales"),
            make_transaction(amount="250", category="Rent"),
        ])
        assert tips[0].type == "warning"
        assert "150.00" in tips[0].tip

    def test_dominant_category(self, make_transaction):
        tips = rule_based_tips(sample(make_transaction))
        assert any(t.type == "saving" and "Rent" in t.tip for t in tips)

    def test_headline(self, make_transaction):
        tips = rule_based_tips(sample(make_transaction))
        assert headline_tip(tips) == tips[0]
        assert headline_tip([]) is None
