"""
Scenario execution endpoints.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from storefront_e2e.api.routes.scenarios import get_scenario_storage
from storefront_e2e.config import settings
from storefront_e2e.core.browser import BrowserOptions, BrowserType
from storefront_e2e.core.errors import AmbiguousStepDefinition
from storefront_e2e.core.scenario import Scenario
from storefront_e2e.runner import ScenarioResult, ScenarioRunner
from storefront_e2e.schemas.scenario import (
    ExecutionRequest,
    ExecutionResponse,
    SuiteSummary,
)
from storefront_e2e.suites import SUITES, get_suite

router = APIRouter()

# In-memory execution history, keyed by execution id
_execution_history: dict[str, dict[str, Any]] = {}


def _to_response(data: dict[str, Any]) -> ExecutionResponse:
    return ExecutionResponse.model_validate(data)


def _options_for(request: ExecutionRequest) -> BrowserOptions:
    try:
        browser_type = BrowserType(request.browser)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unsupported browser '{request.browser}'") from None
    return BrowserOptions(
        browser_type=browser_type,
        headless=request.headless,
        slow_mo=settings.playwright_slow_mo,
        timeout=request.timeout,
    )


async def _run(runner: ScenarioRunner, scenarios: list[Scenario]) -> list[ScenarioResult]:
    """Run scenarios, mapping load-time configuration errors to 400."""
    try:
        results = await runner.run_many(scenarios)
    except (AmbiguousStepDefinition, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    for result in results:
        _execution_history[result.execution_id] = result.to_dict()
    return results


@router.get("/suites", response_model=list[SuiteSummary])
async def list_suites():
    """
    List the built-in scenario suites.
    """
    return [
        SuiteSummary(name=name, scenarios=[scenario.name for scenario in build()])
        for name, build in SUITES.items()
    ]


@router.post("/run", response_model=ExecutionResponse)
async def execute_scenario(request: ExecutionRequest):
    """
    Execute a scenario and return results.

    Either provide scenario_id to run a stored scenario, or scenario for inline execution.
    """
    storage = get_scenario_storage()

    if request.scenario_id:
        if request.scenario_id not in storage:
            raise HTTPException(
                status_code=404, detail=f"Scenario {request.scenario_id} not found"
            )
        data = storage[request.scenario_id]
        scenario = Scenario.model_validate({key: data[key] for key in Scenario.model_fields})
    elif request.scenario:
        scenario = Scenario.model_validate(request.scenario.model_dump())
    else:
        raise HTTPException(
            status_code=400, detail="Either scenario_id or scenario must be provided"
        )

    runner = ScenarioRunner(browser_options=_options_for(request))
    (result,) = await _run(runner, [scenario])

    if request.scenario_id and request.scenario_id in storage:
        storage[request.scenario_id]["last_run_status"] = result.status.value
        storage[request.scenario_id]["last_run_at"] = datetime.utcnow()

    return _to_response(result.to_dict())


@router.post("/suites/{name}", response_model=list[ExecutionResponse])
async def execute_suite(
    name: str,
    tag: str | None = Query(None, description="Only scenarios carrying this tag"),
    headless: bool = Query(True),
):
    """
    Run a built-in suite. Scenarios share one browser and one session cache.
    """
    try:
        scenarios = get_suite(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Suite '{name}' not found") from None

    if tag:
        scenarios = [scenario for scenario in scenarios if tag in scenario.tags]

    options = BrowserOptions.from_settings(settings)
    options.headless = headless
    results = await _run(ScenarioRunner(browser_options=options), scenarios)
    return [_to_response(result.to_dict()) for result in results]


@router.get("/history", response_model=list[ExecutionResponse])
async def list_executions(limit: int = Query(20, ge=1, le=100)):
    """
    Get execution history, most recent first.
    """
    executions = sorted(
        _execution_history.values(), key=lambda e: e["started_at"], reverse=True
    )
    return [_to_response(e) for e in executions[:limit]]


@router.get("/{execution_id}", response_model=ExecutionResponse)
async def get_execution(execution_id: str):
    """
    Get details of a specific execution.
    """
    if execution_id not in _execution_history:
        raise HTTPException(
            status_code=404, detail=f"Execution {execution_id} not found"
        )
    return _to_response(_execution_history[execution_id])
