"""
Step Registry

Binds natural-language phrase patterns to async handlers. Patterns are
Cucumber expressions restricted to `{string}` (quoted text) and `{int}`
placeholders:

    steps = StepLibrary("cart")

    @steps.when("I add {int} products to my cart")
    async def add_products(ctx, count):
        await ctx.actions.add_items(count)

    registry = StepRegistry.build([steps])
    resolved = registry.resolve(StepKeyword.WHEN, "I add 3 products to my cart")
    await resolved.run(ctx)

Overlapping patterns for the same keyword are rejected when the registry is
built, never at run time.
"""

import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

import structlog
from cucumber_expressions.expression import CucumberExpression
from cucumber_expressions.parameter_type_registry import ParameterTypeRegistry

from storefront_e2e.core.errors import AmbiguousStepDefinition, UnresolvedStepPhrase

logger = structlog.get_logger()

StepHandler = Callable[..., Awaitable[Any]]


class StepKeyword(str, Enum):
    """Step groups: setup, action and assertion."""

    GIVEN = "given"
    WHEN = "when"
    THEN = "then"


CONJUNCTIONS = ("and", "but")

PARAMETER_TYPES = ParameterTypeRegistry()

# placeholder -> canonical value used when comparing two patterns
PLACEHOLDER_SAMPLES: dict[str, str] = {
    "string": '"sample"',
    "int": "7",
}

_PLACEHOLDER_RE = re.compile(r"\{(\w*)\}")


def _sample(expression: str) -> str:
    return _PLACEHOLDER_RE.sub(lambda m: PLACEHOLDER_SAMPLES[m.group(1)], expression)


@dataclass(frozen=True)
class _Segment:
    """One whitespace-separated word of a pattern."""

    expression: str
    placeholder: str | None
    sample: str
    compiled: CucumberExpression = field(repr=False, compare=False)

    @classmethod
    def parse(cls, word: str) -> "_Segment":
        whole = _PLACEHOLDER_RE.fullmatch(word)
        return cls(
            expression=word,
            placeholder=whole.group(1) if whole else None,
            sample=_sample(word),
            compiled=CucumberExpression(word, PARAMETER_TYPES),
        )

    def accepts(self, text: str) -> bool:
        return self.compiled.match(text) is not None


def _absorbs(segment: _Segment, others: tuple[_Segment, ...], start: int, rest) -> bool:
    # a quoted placeholder may cover several literal words, e.g. {string} vs "Price low"
    if segment.placeholder is None:
        return False
    for end in range(start + 2, len(others) + 1):
        if others[end - 1].placeholder is not None:
            break
        text = " ".join(word.sample for word in others[start:end])
        if segment.accepts(text) and rest(end):
            return True
    return False


def _segments_overlap(left: tuple[_Segment, ...], right: tuple[_Segment, ...]) -> bool:
    """Whether every position of both patterns can be satisfied by one phrase."""

    @lru_cache(maxsize=None)
    def walk(i: int, j: int) -> bool:
        if i == len(left) or j == len(right):
            return i == len(left) and j == len(right)
        a, b = left[i], right[j]
        if (a.accepts(b.sample) or b.accepts(a.sample)) and walk(i + 1, j + 1):
            return True
        return _absorbs(a, right, j, lambda end: walk(i + 1, end)) or _absorbs(
            b, left, i, lambda end: walk(end, j + 1)
        )

    return walk(0, 0)


@dataclass(frozen=True)
class StepPattern:
    """A compiled phrase pattern."""

    expression: str
    compiled: CucumberExpression = field(init=False, repr=False, compare=False)
    segments: tuple[_Segment, ...] = field(init=False, repr=False, compare=False)
    sample: str = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        for name in _PLACEHOLDER_RE.findall(self.expression):
            if name not in PLACEHOLDER_SAMPLES:
                raise ValueError(
                    f"Unknown placeholder '{{{name}}}' in step '{self.expression}'"
                )

        object.__setattr__(self, "compiled", CucumberExpression(self.expression, PARAMETER_TYPES))
        object.__setattr__(
            self, "segments", tuple(_Segment.parse(word) for word in self.expression.split())
        )
        object.__setattr__(self, "sample", _sample(self.expression))

    def match(self, phrase: str) -> list[Any] | None:
        """Return converted placeholder values, or None if the phrase differs."""
        arguments = self.compiled.match(phrase.strip())
        if arguments is None:
            return None
        return [argument.value for argument in arguments]

    def overlaps(self, other: "StepPattern") -> bool:
        """Whether some phrase could match both patterns."""
        return self.expression == other.expression or _segments_overlap(
            self.segments, other.segments
        )


@dataclass(frozen=True)
class StepDefinition:
    keyword: StepKeyword
    pattern: StepPattern
    handler: StepHandler
    source: str

    @property
    def expression(self) -> str:
        return self.pattern.expression


@dataclass(frozen=True)
class ResolvedStep:
    """A definition paired with the arguments extracted from a phrase."""

    definition: StepDefinition
    phrase: str
    args: tuple[Any, ...]

    async def run(self, context: Any) -> Any:
        return await self.definition.handler(context, *self.args)


class StepLibrary:
    """A named group of step definitions authored together."""

    def __init__(self, name: str):
        self.name = name
        self._definitions: list[StepDefinition] = []

    @property
    def definitions(self) -> tuple[StepDefinition, ...]:
        return tuple(self._definitions)

    def step(self, keyword: StepKeyword, expression: str) -> Callable[[StepHandler], StepHandler]:
        pattern = StepPattern(expression)

        def decorator(handler: StepHandler) -> StepHandler:
            self._definitions.append(
                StepDefinition(
                    keyword=keyword,
                    pattern=pattern,
                    handler=handler,
                    source=f"{self.name}:{handler.__name__}",
                )
            )
            return handler

        return decorator

    def given(self, expression: str):
        return self.step(StepKeyword.GIVEN, expression)

    def when(self, expression: str):
        return self.step(StepKeyword.WHEN, expression)

    def then(self, expression: str):
        return self.step(StepKeyword.THEN, expression)


class StepRegistry:
    """
    Read-only lookup from (keyword, phrase) to a step definition.

    Build it once per suite with StepRegistry.build(); construction fails
    with AmbiguousStepDefinition if two definitions overlap.
    """

    def __init__(self, definitions: Iterable[StepDefinition] = ()):
        grouped: dict[StepKeyword, list[StepDefinition]] = {k: [] for k in StepKeyword}
        for definition in definitions:
            existing = grouped[definition.keyword]
            for other in existing:
                if definition.pattern.overlaps(other.pattern):
                    raise AmbiguousStepDefinition(
                        definition.keyword.value,
                        definition.expression,
                        other.expression,
                        (definition.source, other.source),
                    )
            existing.append(definition)

        self._definitions: dict[StepKeyword, tuple[StepDefinition, ...]] = {
            keyword: tuple(defs) for keyword, defs in grouped.items()
        }

    @classmethod
    def build(cls, libraries: Iterable[StepLibrary]) -> "StepRegistry":
        libraries = list(libraries)
        registry = cls(d for library in libraries for d in library.definitions)
        logger.info(
            "step_registry_built",
            libraries=[library.name for library in libraries],
            definitions=len(registry),
        )
        return registry

    def __len__(self) -> int:
        return sum(len(defs) for defs in self._definitions.values())

    def definitions(self, keyword: StepKeyword | None = None) -> tuple[StepDefinition, ...]:
        if keyword is not None:
            return self._definitions[keyword]
        return tuple(d for defs in self._definitions.values() for d in defs)

    def resolve(self, keyword: StepKeyword, phrase: str) -> ResolvedStep:
        """
        Find the single definition matching ``phrase``.

        Raises:
            UnresolvedStepPhrase: no definition matches
            AmbiguousStepDefinition: more than one definition matches
        """
        matches: list[tuple[StepDefinition, list[Any]]] = []
        for definition in self._definitions[keyword]:
            args = definition.pattern.match(phrase)
            if args is not None:
                matches.append((definition, args))

        if not matches:
            raise UnresolvedStepPhrase(keyword.value, phrase)
        if len(matches) > 1:
            first, second = matches[0][0], matches[1][0]
            raise AmbiguousStepDefinition(
                keyword.value,
                first.expression,
                second.expression,
                (first.source, second.source),
            )

        definition, args = matches[0]
        return ResolvedStep(definition=definition, phrase=phrase, args=tuple(args))


def parse_step_line(line: str, previous: StepKeyword | None = None) -> tuple[StepKeyword, str]:
    """
    Split 'When I add 3 products to my cart' into keyword and phrase.

    'And' and 'But' continue the previous keyword.
    """
    head, _, phrase = line.strip().partition(" ")
    word = head.lower()
    phrase = phrase.strip()

    if word in CONJUNCTIONS:
        if previous is None:
            raise ValueError(f"'{head}' step has no preceding keyword: '{line}'")
        return previous, phrase

    try:
        return StepKeyword(word), phrase
    except ValueError:
        raise ValueError(
            f"Step must start with Given, When, Then, And or But: '{line}'"
        ) from None
