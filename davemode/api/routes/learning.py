from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from davemode.api import schemas
from davemode.api.dependencies import get_orchestrator
from davemode.services.orchestrator import OrchestratorService

router = APIRouter()


@router.get("/learning")
def learning_patterns(orchestrator: OrchestratorService = Depends(get_orchestrator)) -> Dict[str, Any]:
    """Learned patterns keyed by kind and project type."""
    return orchestrator.get_learning_patterns()


@router.get("/learning/agents")
def agent_performance(orchestrator: OrchestratorService = Depends(get_orchestrator)) -> Dict[str, Any]:
    return orchestrator.get_agent_performance()


@router.get("/templates", response_model=List[schemas.TemplateOut])
def templates(orchestrator: OrchestratorService = Depends(get_orchestrator)):
    return orchestrator.get_templates()
