"""Static catalog of project templates."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class ProjectTemplate:
    id: str
    name: str
    description: str
    technologies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


TEMPLATES = (
    ProjectTemplate(
        id="react-app",
        name="React Application",
        description="A modern React application with hooks and context",
        technologies=["react", "javascript", "css"],
    ),
    ProjectTemplate(
        id="node-api",
        name="Node.js API",
        description="A RESTful API built with Node.js and Express",
        technologies=["node", "express", "javascript"],
    ),
    ProjectTemplate(
        id="full-stack",
        name="Full Stack Application",
        description="A complete full-stack application with React frontend and Node.js backend",
        technologies=["react", "node", "express", "javascript", "css"],
    ),
)


def list_templates() -> List[Dict[str, Any]]:
    return [template.to_dict() for template in TEMPLATES]
