from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from davemode.api import schemas
from davemode.api.dependencies import get_orchestrator
from davemode.services.orchestrator import OrchestratorService

router = APIRouter()


@router.post("/clarification/response")
def submit_response(
    body: schemas.ClarificationResponseIn,
    orchestrator: OrchestratorService = Depends(get_orchestrator),
) -> Dict[str, Any]:
    """Answer a pending interaction; returns follow-up questions or the task result."""
    return orchestrator.submit_clarification_response(body.interaction_id, body.responses)


@router.get("/clarification/history/{project_type}", response_model=List[schemas.ClarificationHistoryOut])
def clarification_history(
    project_type: str,
    limit: int = 10,
    orchestrator: OrchestratorService = Depends(get_orchestrator),
):
    """Answered creation clarifications for a project type, newest first."""
    return orchestrator.get_clarification_history(project_type, limit=limit)
