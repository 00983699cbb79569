from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict

from davemode.models.payloads import ProjectContext, Requirements, SourceFile

# =============================================================================
# Base Models
# =============================================================================

class APIModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

class Health(BaseModel):
    status: str = "ok"
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

class ErrorOut(BaseModel):
    error: str

# =============================================================================
# Tasks
# =============================================================================

class AnalyzeRequest(APIModel):
    files: List[SourceFile] = Field(default_factory=list)
    project_context: Optional[ProjectContext] = Field(default=None, alias="projectContext")

class CreateRequest(APIModel):
    requirements: Requirements = Field(default_factory=Requirements)
    context: Optional[Dict[str, Any]] = None

class ExtendRequest(APIModel):
    files: List[SourceFile] = Field(default_factory=list)
    new_requirements: Requirements = Field(default_factory=Requirements, alias="newRequirements")
    project_context: Optional[ProjectContext] = Field(default=None, alias="projectContext")

# =============================================================================
# Clarifications
# =============================================================================

class ClarificationResponseIn(APIModel):
    interaction_id: str = Field(alias="interactionId")
    responses: List[Optional[str]] = Field(default_factory=list)

class ClarificationHistoryOut(APIModel):
    interaction_id: str
    questions: List[str]
    ambiguities: List[str] = Field(default_factory=list)
    contextual_matches: List[str] = Field(default_factory=list)
    responses: List[Optional[str]] = Field(default_factory=list)
    updated_requirements: Optional[Requirements] = None
    timestamp: str

# =============================================================================
# Catalog
# =============================================================================

class TemplateOut(APIModel):
    id: str
    name: str
    description: str
    technologies: List[str] = Field(default_factory=list)
