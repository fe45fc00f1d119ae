"""
Scenario CRUD endpoints.

Scenarios are kept in memory for the lifetime of the process.
"""

from datetime import datetime
from typing import Any
import uuid

from fastapi import APIRouter, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from storefront_e2e.core.scenario import Scenario
from storefront_e2e.schemas.scenario import (
    ScenarioCreate,
    ScenarioResponse,
    ScenarioUpdate,
)

router = APIRouter()

_scenarios: dict[str, dict[str, Any]] = {}


def _to_response(scenario_id: str, data: dict) -> ScenarioResponse:
    return ScenarioResponse(id=scenario_id, **data)


def _not_found(scenario_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Scenario {scenario_id} not found")


@router.get("", response_model=list[ScenarioResponse])
async def list_scenarios(
    skip: int = Query(0, ge=0, description="Number of scenarios to skip"),
    limit: int = Query(50, ge=1, le=100, description="Maximum scenarios to return"),
    tag: str | None = Query(None, description="Filter by tag"),
):
    """
    List stored scenarios, newest first, with optional tag filtering.
    """
    items = list(_scenarios.items())
    if tag:
        items = [(sid, s) for sid, s in items if tag in s.get("tags", [])]

    items.sort(key=lambda x: x[1]["updated_at"], reverse=True)
    return [_to_response(sid, s) for sid, s in items[skip : skip + limit]]


@router.post("", response_model=ScenarioResponse, status_code=201)
async def create_scenario(scenario: ScenarioCreate):
    """
    Store a new scenario.
    """
    scenario_id = str(uuid.uuid4())
    now = datetime.utcnow()
    _scenarios[scenario_id] = {
        **scenario.model_dump(),
        "created_at": now,
        "updated_at": now,
    }
    return _to_response(scenario_id, _scenarios[scenario_id])


@router.get("/{scenario_id}", response_model=ScenarioResponse)
async def get_scenario(scenario_id: str):
    if scenario_id not in _scenarios:
        raise _not_found(scenario_id)
    return _to_response(scenario_id, _scenarios[scenario_id])


@router.put("/{scenario_id}", response_model=ScenarioResponse)
async def update_scenario(scenario_id: str, update: ScenarioUpdate):
    """
    Update an existing scenario. The merged result must still be a valid scenario.
    """
    if scenario_id not in _scenarios:
        raise _not_found(scenario_id)

    data = {**_scenarios[scenario_id], **update.model_dump(exclude_unset=True)}
    try:
        Scenario.model_validate({key: data[key] for key in Scenario.model_fields})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e

    data["updated_at"] = datetime.utcnow()
    _scenarios[scenario_id] = data
    return _to_response(scenario_id, data)


@router.delete("/{scenario_id}", status_code=204)
async def delete_scenario(scenario_id: str):
    if scenario_id not in _scenarios:
        raise _not_found(scenario_id)
    del _scenarios[scenario_id]


def get_scenario_storage() -> dict[str, dict[str, Any]]:
    """Get reference to scenario storage for the execution module."""
    return _scenarios
