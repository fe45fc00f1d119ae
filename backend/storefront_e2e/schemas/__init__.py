"""
Pydantic schemas for API request/response.
"""

from storefront_e2e.schemas.scenario import (
    ExecutionRequest,
    ExecutionResponse,
    ExecutionStatus,
    ScenarioCreate,
    ScenarioResponse,
    ScenarioUpdate,
    StepDefinitionSchema,
    StepLibrarySchema,
    StepResultSchema,
    SuiteSummary,
)

__all__ = [
    "ExecutionRequest",
    "ExecutionResponse",
    "ExecutionStatus",
    "ScenarioCreate",
    "ScenarioResponse",
    "ScenarioUpdate",
    "StepDefinitionSchema",
    "StepLibrarySchema",
    "StepResultSchema",
    "SuiteSummary",
]
