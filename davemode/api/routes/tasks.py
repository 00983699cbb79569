from typing import Any, Dict

from fastapi import APIRouter, Depends

from davemode.api import schemas
from davemode.api.dependencies import get_orchestrator
from davemode.services.orchestrator import OrchestratorService

router = APIRouter()


@router.post("/analyze")
def analyze(
    request: schemas.AnalyzeRequest,
    orchestrator: OrchestratorService = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Analyze existing code, or return the questions to answer first."""
    return orchestrator.analyze_existing_code(request.files, request.project_context)


@router.post("/create")
def create(
    request: schemas.CreateRequest,
    orchestrator: OrchestratorService = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Create a new program, or return the questions to answer first."""
    return orchestrator.create_program(request.requirements, request.context)


@router.post("/extend")
def extend(
    request: schemas.ExtendRequest,
    orchestrator: OrchestratorService = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Add features to an existing project, or return the questions to answer first."""
    return orchestrator.extend_existing_project(request.files, request.new_requirements, request.project_context)
