"""Unit tests for best-effort seed expansion."""

from __future__ import annotations

import asyncio

import pytest

from seoplanner.agents.seed_expander import SeedExpansionAgent, SeedExpansionInput, SeedExpansionOutput
from seoplanner.api.dependencies import get_seed_expander
from seoplanner.config import settings
from seoplanner.services.seed_expansion import SeedExpander


class _FakeAgent:
    def __init__(self, keywords: list[str] | None = None, error: Exception | None = None, delay: float = 0) -> None:
        self.keywords = keywords or []
        self.error = error
        self.delay = delay
        self.inputs: list[SeedExpansionInput] = []

    async def run(self, input_data: SeedExpansionInput) -> SeedExpansionOutput:
        self.inputs.append(input_data)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SeedExpansionOutput(keywords=self.keywords)


@pytest.mark.asyncio
async def test_expand_appends_new_terms_only() -> None:
    agent = _FakeAgent(["Vue", "react", " svelte ", "", "vue", "angular", "solid"])
    expander = SeedExpander(agent, max_new_keywords=3)

    seeds = await expander.expand(["react", "nextjs", "typescript"], "developers")

    assert seeds == ["react", "nextjs", "typescript", "Vue", "svelte", "angular"]
    assert agent.inputs[0].target_audience == "developers"
    assert agent.inputs[0].max_new_keywords == 3


@pytest.mark.asyncio
async def test_expand_returns_original_seeds_on_failure() -> None:
    expander = SeedExpander(_FakeAgent(error=RuntimeError("model unavailable")))

    seeds = await expander.expand(["react", "nextjs", "typescript"], "developers")

    assert seeds == ["react", "nextjs", "typescript"]


@pytest.mark.asyncio
async def test_expand_returns_original_seeds_on_timeout() -> None:
    expander = SeedExpander(_FakeAgent(["vue"], delay=5), timeout_seconds=0.01)

    seeds = await expander.expand(["react", "nextjs", "typescript"], "developers")

    assert seeds == ["react", "nextjs", "typescript"]


def test_seed_expansion_prompt_mentions_seeds_and_audience() -> None:
    agent = SeedExpansionAgent()

    prompt = agent._build_prompt(
        SeedExpansionInput(seed_keywords=["react", "nextjs"], target_audience="  ", max_new_keywords=3)
    )

    assert '"react, nextjs"' in prompt
    assert "Target audience: not specified" in prompt
    assert agent.output_type is SeedExpansionOutput


def test_seed_expander_dependency_uses_fast_llm_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "research_seed_expansion_enabled", True)
    monkeypatch.setattr(settings, "llm_timeout_fast", 7)

    expander = get_seed_expander()

    assert expander is not None
    assert expander.timeout_seconds == 7


def test_seed_expander_dependency_is_disabled_by_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "research_seed_expansion_enabled", False)

    assert get_seed_expander() is None
