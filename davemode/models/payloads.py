"""
DaveMode Request Payloads

Pydantic models for the loosely-structured payloads that travel through
clarification and task execution: project requirements, analysis context
and uploaded source files. Unknown keys are kept so callers can round-trip
fields this package does not interpret.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PayloadModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_data(self) -> Dict[str, Any]:
        """JSON-ready dict, camelCase aliases, unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Feature(PayloadModel):
    name: str
    description: str = ""
    type: Optional[str] = None
    requires_backend: bool = Field(default=False, alias="requiresBackend")


class DesignPreferences(PayloadModel):
    preferences: Optional[str] = None
    style: Optional[str] = None


class DataModel(PayloadModel):
    description: Optional[str] = None
    type: Optional[str] = None


class UserProfile(PayloadModel):
    description: Optional[str] = None
    roles: Optional[List[str]] = None
    scale: Optional[str] = None


class DeploymentTarget(PayloadModel):
    preferences: Optional[str] = None
    platform: Optional[str] = None


class Timeline(PayloadModel):
    description: Optional[str] = None
    urgency: Optional[str] = None


class PaymentOptions(PayloadModel):
    methods: List[str] = Field(default_factory=list)


class Capability(PayloadModel):
    required: bool = False


class Requirements(PayloadModel):
    """
    Project requirements, populated incrementally by clarification answers.

    Every section is optional; which sections are present drives ambiguity
    detection. ``features`` may be absent or empty, both count as missing.
    The descriptive sections also accept a bare string, which is stored as
    the section's free-text field; an empty string counts as missing.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    features: Optional[List[Feature]] = None
    framework: Optional[str] = None
    backend: Optional[str] = None
    design: Optional[DesignPreferences] = None
    integrations: Optional[List[str]] = None
    data_model: Optional[DataModel] = Field(default=None, alias="dataModel")
    users: Optional[UserProfile] = None
    deployment: Optional[DeploymentTarget] = None
    timeline: Optional[Timeline] = None
    # Domain-specific sections filled from contextual questions
    payment: Optional[PaymentOptions] = None
    inventory: Optional[Capability] = None
    authentication: Optional[Capability] = None
    dashboard: Optional[Capability] = None
    cms: Optional[Capability] = None

    @field_validator("design", "deployment", mode="before")
    @classmethod
    def _preferences_from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"preferences": value} if value else None
        return value

    @field_validator("users", "timeline", "data_model", mode="before")
    @classmethod
    def _description_from_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"description": value} if value else None
        return value


class ProjectContext(PayloadModel):
    """Context supplied with an analysis or extension request."""

    type: Optional[str] = None
    analysis_focus: Optional[str] = Field(default=None, alias="analysisFocus")
    concerns: Optional[str] = None
    analysis_goal: Optional[str] = Field(default=None, alias="analysisGoal")


class SourceFile(PayloadModel):
    """A file supplied by the caller or produced by an agent."""

    path: str
    name: Optional[str] = None
    content: str = ""

    @property
    def filename(self) -> str:
        return self.name or self.path.rsplit("/", 1)[-1]
