"""
Pydantic schemas for scenario-related API endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from storefront_e2e.core.scenario import Scenario


class ExecutionStatus(str, Enum):
    """Scenario execution status."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    ERROR = "error"


class ScenarioCreate(Scenario):
    """Request schema for creating a scenario."""

    model_config = {"json_schema_extra": {"example": {
        "name": "Complete checkout",
        "tags": ["cart", "checkout"],
        "libraries": ["inventory", "cart"],
        "steps": [
            'Given I am on the products page as "standard_user"',
            "When I add 2 products to my cart",
            "And I go to the cart page",
            "And I proceed to checkout",
            'And I fill in checkout information with "John" "Doe" "12345"',
            "And I continue with the checkout",
            "And I complete the checkout",
            "Then I should see the order confirmation",
        ],
    }}}


class ScenarioUpdate(BaseModel):
    """Request schema for updating a scenario."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    tags: list[str] | None = None
    libraries: list[str] | None = None
    steps: list[str] | None = Field(None, min_length=1)


class ScenarioResponse(BaseModel):
    """Response schema for a stored scenario."""

    id: str
    name: str
    description: str
    tags: list[str]
    libraries: list[str]
    steps: list[str]
    created_at: datetime
    updated_at: datetime
    last_run_status: ExecutionStatus | None = None
    last_run_at: datetime | None = None


class StepDefinitionSchema(BaseModel):
    """A registered step phrase."""

    keyword: str
    pattern: str
    source: str


class StepLibrarySchema(BaseModel):
    name: str
    steps: list[StepDefinitionSchema]


class ExecutionRequest(BaseModel):
    """Request to execute a scenario."""

    scenario_id: str | None = Field(None, description="ID of a stored scenario to run")
    scenario: ScenarioCreate | None = Field(None, description="Inline scenario to run")
    browser: str = Field(default="chromium", description="Browser type")
    headless: bool = Field(default=True, description="Run in headless mode")
    timeout: int = Field(default=5000, ge=1000, le=120000, description="Default command timeout in ms")

    model_config = {"json_schema_extra": {"example": {
        "scenario_id": "scenario-123",
        "browser": "chromium",
        "headless": True,
        "timeout": 5000,
    }}}


class StepResultSchema(BaseModel):
    """Result of a single step execution."""

    step_number: int
    keyword: str
    phrase: str
    status: ExecutionStatus
    duration_ms: float
    error_type: str | None = None
    error_message: str | None = None
    handler: str | None = None


class ExecutionResponse(BaseModel):
    """Response for a scenario execution."""

    execution_id: str
    scenario_name: str
    status: ExecutionStatus
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: float
    passed_steps: int
    failed_steps: int
    total_steps: int
    step_results: list[StepResultSchema]
    error_message: str | None = None
    page_url: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class SuiteSummary(BaseModel):
    name: str
    scenarios: list[str]
