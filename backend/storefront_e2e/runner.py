"""
Scenario Runner

This module orchestrates scenario execution:
1. Builds the step registry for the scenario's libraries (load time)
2. Opens an isolated browser context per scenario
3. Resolves and runs each phrase, aborting on the first failure
4. Clears interception rules and collects per-step results
"""

import time
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

import structlog
from playwright.async_api import Page

from storefront_e2e.config import Settings, settings as default_settings
from storefront_e2e.core.actions import StorefrontActions
from storefront_e2e.core.browser import BrowserOptions, BrowserSession, take_screenshot
from storefront_e2e.core.context import ScenarioContext
from storefront_e2e.core.errors import StorefrontTestError
from storefront_e2e.core.interception import InterceptionVirtualizer
from storefront_e2e.core.pages import PageRegistry, build_page_registry
from storefront_e2e.core.scenario import Scenario
from storefront_e2e.core.session import SessionAuthenticator, SessionCache
from storefront_e2e.core.sql_stub import SqlSessionStub
from storefront_e2e.core.steps import StepKeyword, StepRegistry
from storefront_e2e.steps import get_libraries

logger = structlog.get_logger()


class ExecutionStatus(str, Enum):
    """Scenario and step execution status."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class StepResult:
    """Result of a single step execution."""

    step_number: int
    keyword: str
    phrase: str
    status: ExecutionStatus
    duration_ms: float = 0
    error_type: str | None = None
    error_message: str | None = None
    handler: str | None = None


@dataclass
class ScenarioResult:
    """Result of a complete scenario execution."""

    execution_id: str
    scenario_name: str
    status: ExecutionStatus
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: float = 0
    step_results: list[StepResult] = field(default_factory=list)
    error_message: str | None = None
    final_screenshot: str | None = None
    page_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def passed_steps(self) -> int:
        return sum(1 for r in self.step_results if r.status == ExecutionStatus.PASSED)

    @property
    def failed_steps(self) -> int:
        return sum(
            1
            for r in self.step_results
            if r.status in (ExecutionStatus.FAILED, ExecutionStatus.ERROR)
        )

    @property
    def total_steps(self) -> int:
        return len(self.step_results)

    def to_dict(self) -> dict:
        return {
            "execution_id": self.execution_id,
            "scenario_name": self.scenario_name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "passed_steps": self.passed_steps,
            "failed_steps": self.failed_steps,
            "total_steps": self.total_steps,
            "step_results": [
                {
                    "step_number": r.step_number,
                    "keyword": r.keyword,
                    "phrase": r.phrase,
                    "status": r.status.value,
                    "duration_ms": r.duration_ms,
                    "error_type": r.error_type,
                    "error_message": r.error_message,
                    "handler": r.handler,
                }
                for r in self.step_results
            ],
            "error_message": self.error_message,
            "page_url": self.page_url,
            "metadata": self.metadata,
        }


class ScenarioRunner:
    """
    Runs scenarios against the storefront.

    The session cache lives on the runner, so scenarios run by the same
    runner (one per worker process) share cached logins.

    Usage:
        runner = ScenarioRunner()
        results = await runner.run_many(scenarios)
    """

    def __init__(
        self,
        config: Settings | None = None,
        browser_options: BrowserOptions | None = None,
        session_cache: SessionCache | None = None,
        on_step_complete: Callable[[StepResult], None] | None = None,
        capture_screenshots: bool = False,
    ):
        self.config = config or default_settings
        self.browser_options = browser_options or BrowserOptions.from_settings(self.config)
        self.session_cache = session_cache if session_cache is not None else SessionCache()
        self.on_step_complete = on_step_complete
        self.capture_screenshots = capture_screenshots
        self.pages: PageRegistry = build_page_registry(self.config.base_url)
        self._registries: dict[tuple[str, ...], StepRegistry] = {}

    def registry_for(self, scenario: Scenario) -> StepRegistry:
        """
        Build (once) the registry for the scenario's step libraries.

        Raises:
            AmbiguousStepDefinition: two co-loaded definitions overlap
            ValueError: an unknown library name
        """
        libraries = get_libraries(scenario.libraries)
        names = tuple(library.name for library in libraries)
        if names not in self._registries:
            self._registries[names] = StepRegistry.build(libraries)
        return self._registries[names]

    def make_context(self, page: Page) -> ScenarioContext:
        return ScenarioContext(
            page=page,
            pages=self.pages,
            config=self.config,
            actions=StorefrontActions(page, self.pages, self.config),
            authenticator=SessionAuthenticator(self.session_cache, self.pages, self.config),
            virtualizer=InterceptionVirtualizer(page, self.config),
            sql=SqlSessionStub(self.config.base_url),
        )

    async def run(self, scenario: Scenario) -> ScenarioResult:
        """Run one scenario in its own browser."""
        return (await self.run_many([scenario]))[0]

    async def run_many(self, scenarios: Iterable[Scenario]) -> list[ScenarioResult]:
        """
        Run scenarios in order, sharing one browser.

        Every registry is built before the browser starts, so configuration
        errors fail the whole run up front.
        """
        scenarios = list(scenarios)
        registries = [self.registry_for(scenario) for scenario in scenarios]

        results = []
        try:
            async with BrowserSession(self.browser_options) as session:
                for scenario, registry in zip(scenarios, registries):
                    async with session.scenario_page() as page:
                        results.append(await self.execute(scenario, registry, page))
        finally:
            self.session_cache.clear()
        return results

    async def execute(
        self,
        scenario: Scenario,
        registry: StepRegistry,
        page: Page,
    ) -> ScenarioResult:
        """Execute a scenario on an already-open page."""
        started_at = datetime.utcnow()
        result = ScenarioResult(
            execution_id=str(uuid.uuid4()),
            scenario_name=scenario.name,
            status=ExecutionStatus.RUNNING,
            started_at=started_at,
            metadata={
                "description": scenario.description,
                "tags": scenario.tags,
                "libraries": scenario.libraries,
            },
        )

        log = logger.bind(execution_id=result.execution_id, scenario=scenario.name)
        log.info("scenario_started", steps=len(scenario.steps))

        context = self.make_context(page)
        steps = scenario.parsed_steps()

        try:
            for number, (keyword, phrase) in enumerate(steps, start=1):
                if result.status != ExecutionStatus.RUNNING:
                    result.step_results.append(
                        StepResult(number, keyword.value, phrase, ExecutionStatus.SKIPPED)
                    )
                    continue

                step_result = await self._execute_step(registry, context, number, keyword, phrase)
                result.step_results.append(step_result)

                if self.on_step_complete:
                    self.on_step_complete(step_result)

                if step_result.status != ExecutionStatus.PASSED:
                    result.status = step_result.status
                    result.error_message = f"Step {number} '{phrase}': {step_result.error_message}"

            if result.status != ExecutionStatus.RUNNING and self.capture_screenshots:
                result.final_screenshot = await take_screenshot(page)
            result.page_url = page.url
        finally:
            await context.virtualizer.clear()

        if result.status == ExecutionStatus.RUNNING:
            result.status = ExecutionStatus.PASSED

        result.completed_at = datetime.utcnow()
        result.duration_ms = (result.completed_at - started_at).total_seconds() * 1000

        log.info(
            "scenario_completed",
            status=result.status.value,
            duration_ms=round(result.duration_ms, 2),
            passed=result.passed_steps,
            failed=result.failed_steps,
        )
        return result

    async def _execute_step(
        self,
        registry: StepRegistry,
        context: ScenarioContext,
        number: int,
        keyword: StepKeyword,
        phrase: str,
    ) -> StepResult:
        """Resolve and run a single phrase."""
        start = time.time()
        log = logger.bind(step=number, keyword=keyword.value, phrase=phrase)
        handler = None

        try:
            resolved = registry.resolve(keyword, phrase)
            handler = resolved.definition.source
            await resolved.run(context)
        except (StorefrontTestError, AssertionError) as e:
            log.warning("step_failed", error_type=type(e).__name__, error=str(e))
            return StepResult(
                step_number=number,
                keyword=keyword.value,
                phrase=phrase,
                status=ExecutionStatus.FAILED,
                duration_ms=(time.time() - start) * 1000,
                error_type=type(e).__name__,
                error_message=str(e),
                handler=handler,
            )
        except Exception as e:
            log.exception("step_error", error=str(e))
            return StepResult(
                step_number=number,
                keyword=keyword.value,
                phrase=phrase,
                status=ExecutionStatus.ERROR,
                duration_ms=(time.time() - start) * 1000,
                error_type=type(e).__name__,
                error_message=str(e),
                handler=handler,
            )

        duration_ms = (time.time() - start) * 1000
        log.info("step_executed", handler=handler, duration_ms=round(duration_ms, 2))
        return StepResult(
            step_number=number,
            keyword=keyword.value,
            phrase=phrase,
            status=ExecutionStatus.PASSED,
            duration_ms=duration_ms,
            handler=handler,
        )
