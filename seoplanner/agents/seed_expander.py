"""Seed expansion agent: suggests related seed keywords for a small seed set."""

import logging

from pydantic import BaseModel, Field

from seoplanner.agents.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class SeedExpansionInput(BaseModel):
    """Input for the seed expansion agent."""

    seed_keywords: list[str]
    target_audience: str = Field(default="", description="Who the website is written for")
    max_new_keywords: int = Field(default=3, ge=1, le=10)


class SeedExpansionOutput(BaseModel):
    """Output from the seed expansion agent."""

    keywords: list[str] = Field(
        default_factory=list,
        description="New closely related seed keywords, not repeating the input",
    )


class SeedExpansionAgent(BaseAgent[SeedExpansionInput, SeedExpansionOutput]):
    """Agent that proposes 2-3 extra seeds to widen keyword discovery."""

    model_tier = "fast"
    temperature = 0.7

    @property
    def system_prompt(self) -> str:
        return """You are an SEO keyword expert.

Given seed keywords that describe a user's app or business, propose a few additional
closely related seed keywords that would help discover more relevant long-tail keywords.

Rules:
- Short phrases (1-3 words), lowercase.
- Do not repeat or trivially pluralize the given seeds.
- Stay inside the niche described by the seeds and the target audience."""

    @property
    def output_type(self) -> type[SeedExpansionOutput]:
        return SeedExpansionOutput

    def _build_prompt(self, input_data: SeedExpansionInput) -> str:
        seeds = ", ".join(input_data.seed_keywords)
        audience = input_data.target_audience.strip() or "not specified"
        return (
            f'Seed keywords: "{seeds}"\n'
            f"Target audience: {audience}\n\n"
            f"Generate 2-{input_data.max_new_keywords} additional closely related seed keywords."
        )
