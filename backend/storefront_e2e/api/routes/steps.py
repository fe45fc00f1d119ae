"""
Step phrase listing.
"""

from fastapi import APIRouter, HTTPException, Query

from storefront_e2e.core.steps import StepKeyword
from storefront_e2e.schemas.scenario import StepDefinitionSchema, StepLibrarySchema
from storefront_e2e.steps import LIBRARIES

router = APIRouter()


@router.get("", response_model=list[StepLibrarySchema])
async def list_steps(
    library: str | None = Query(None, description="Only this step library"),
    keyword: StepKeyword | None = Query(None, description="Only this keyword"),
):
    """
    List the phrases every step library registers, so scenario authors can
    see what is available.
    """
    if library is not None and library not in LIBRARIES:
        raise HTTPException(status_code=404, detail=f"Step library '{library}' not found")

    names = [library] if library else list(LIBRARIES)
    return [
        StepLibrarySchema(
            name=name,
            steps=[
                StepDefinitionSchema(
                    keyword=definition.keyword.value,
                    pattern=definition.expression,
                    source=definition.source,
                )
                for definition in LIBRARIES[name].definitions
                if keyword is None or definition.keyword == keyword
            ],
        )
        for name in names
    ]
