"""
Scenario model.

A scenario is plain data: a name, the step libraries it loads, and ordered
keyword-prefixed phrases such as 'When I add 3 products to my cart'.
"""

from pydantic import BaseModel, Field, field_validator

from storefront_e2e.core.steps import StepKeyword, parse_step_line


class Scenario(BaseModel):
    """One behavior-style test case."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    libraries: list[str] = Field(default_factory=list, description="Step libraries to load")
    steps: list[str] = Field(..., min_length=1, description="Keyword-prefixed phrases")

    @field_validator("steps")
    @classmethod
    def steps_have_keywords(cls, steps: list[str]) -> list[str]:
        previous = None
        for line in steps:
            previous, _ = parse_step_line(line, previous)
        return steps

    def parsed_steps(self) -> list[tuple[StepKeyword, str]]:
        """Return (keyword, phrase) pairs with And/But resolved."""
        parsed = []
        previous = None
        for line in self.steps:
            previous, phrase = parse_step_line(line, previous)
            parsed.append((previous, phrase))
        return parsed
