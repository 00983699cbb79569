"""
DaveMode Project Planning

Heuristic planning for new projects and feature extensions, plus the
assembly step that turns agent-generated files into a project: a nested
directory tree, package.json dependencies and scripts, and a README.
"""

import json
from typing import Any, Dict, List, Sequence

from davemode.logging import get_logger
from davemode.models.domain import CreationStrategy, StrategyApproach
from davemode.models.payloads import Feature, Requirements, SourceFile

logger = get_logger(__name__)

DEFAULT_PROJECT_NAME = "New Project"

# Builders used for a project type until a pattern has been learned
DEFAULT_BUILDERS: Dict[str, List[str]] = {
    "web-app": ["deepseek-v3"],
    "api": ["qwen3-coder"],
    "mobile-app": ["deepseek-r1"],
}


# New projects

def determine_project_type(requirements: Requirements) -> str:
    if requirements.type:
        return requirements.type
    if requirements.framework in ("react", "vue", "angular"):
        return "web-app"
    if requirements.backend in ("node", "python"):
        return "api"
    return "web-app"


def determine_technologies(requirements: Requirements, project_type: str) -> List[str]:
    technologies: List[str] = []
    if project_type == "web-app":
        technologies.extend(["html", "css", "javascript"])
        framework = requirements.framework
        if framework == "react" or not framework:
            technologies.append("react")
        elif framework in ("vue", "angular"):
            technologies.append(framework)

    backend = requirements.backend
    if backend == "node" or not backend:
        technologies.extend(["node", "express"])
    elif backend == "python":
        technologies.extend(["python", "flask"])
    return technologies


def create_project_structure(project_type: str, technologies: Sequence[str]) -> Dict[str, Any]:
    if project_type == "web-app":
        structure: Dict[str, Any] = {
            "src": {"components": {}, "pages": {}, "styles": {}, "utils": {}, "hooks": {}},
            "public": {},
        }
        if "node" in technologies:
            structure["server"] = {"routes": {}, "middleware": {}, "models": {}, "controllers": {}}
        return structure
    if project_type == "api":
        return {
            "src": {
                "routes": {},
                "middleware": {},
                "models": {},
                "controllers": {},
                "services": {},
                "utils": {},
            },
            "tests": {},
        }
    return {}


def break_down_feature(feature: Feature, project_type: str) -> List[Dict[str, Any]]:
    components = [{
        "name": f"{feature.name}Component",
        "type": "component",
        "description": f"Component for {feature.name}",
        "feature": feature.name,
    }]
    if project_type == "web-app":
        components.append({
            "name": f"{feature.name}Style",
            "type": "style",
            "description": f"Styles for {feature.name}",
            "feature": feature.name,
        })
    if feature.requires_backend:
        components.append({
            "name": f"{feature.name}API",
            "type": "api",
            "description": f"API endpoint for {feature.name}",
            "feature": feature.name,
        })
    return components


def plan_new_project(requirements: Requirements) -> Dict[str, Any]:
    project_type = determine_project_type(requirements)
    technologies = determine_technologies(requirements, project_type)
    features = requirements.features or []
    components: List[Dict[str, Any]] = []
    for feature in features:
        components.extend(break_down_feature(feature, project_type))
    return {
        "name": requirements.name or DEFAULT_PROJECT_NAME,
        "description": requirements.description or "",
        "type": project_type,
        "technologies": technologies,
        "structure": create_project_structure(project_type, technologies),
        "components": components,
        "features": [feature.to_data() for feature in features],
        "timeline": requirements.timeline.to_data() if requirements.timeline else None,
    }


def plan_creation_strategy(project_type: str, learned: CreationStrategy) -> CreationStrategy:
    """The learned strategy when one exists, else the standard per-type assignment."""
    if learned.approach == StrategyApproach.LEARNED:
        return learned
    return CreationStrategy(
        architect="qwen3-coder",
        builders=list(DEFAULT_BUILDERS.get(project_type, [])),
        styler="deepseek-v3",
        approach=StrategyApproach.STANDARD,
    )


# Project assembly

def collect_files(results: Sequence[Dict[str, Any]], key: str = "files") -> List[Dict[str, Any]]:
    files: List[Dict[str, Any]] = []
    for result in results:
        for entry in result.get(key) or []:
            if isinstance(entry, dict) and entry.get("path"):
                files.append({"path": str(entry["path"]), "content": str(entry.get("content", ""))})
    return files


def build_file_tree(files: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Nested dict of directories; leaves are file descriptors."""
    tree: Dict[str, Any] = {}
    for file in files:
        parts = [p for p in file["path"].split("/") if p]
        if not parts:
            continue
        node = tree
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict) or child.get("type") == "file":
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = {"type": "file", "path": file["path"]}
    return tree


def read_package_json(files: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    for file in files:
        if file["path"] == "package.json" or file["path"].endswith("/package.json"):
            try:
                data = json.loads(file.get("content") or "{}")
            except ValueError:
                logger.warning("package_json_unparseable", extra={"path": file["path"]})
                return {}
            return data if isinstance(data, dict) else {}
    return {}


def _section(pkg: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = pkg.get(key) or {}
    if not isinstance(value, dict):
        logger.warning("package_json_unparseable", extra={"section": key, "found": type(value).__name__})
        return {}
    return dict(value)


def generate_readme(
    plan: Dict[str, Any],
    dependencies: Dict[str, Any],
    scripts: Dict[str, Any],
) -> str:
    lines = [f"# {plan['name']}", "", "## Description", "", plan.get("description") or "", ""]
    lines.extend(["## Technologies", ""])
    lines.extend(f"- {name}" for name in dependencies)
    lines.extend(["", "## Getting Started", "", "```bash", "npm install"])
    if "start" in scripts:
        lines.append("npm start")
    if "test" in scripts:
        lines.append("npm test")
    lines.extend(["```", "", "## Features", ""])
    for feature in plan.get("features") or []:
        lines.append(f"- {feature.get('name')}: {feature.get('description', '')}")
    return "\n".join(lines) + "\n"


def assemble_project(plan: Dict[str, Any], results: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    files = collect_files(results)
    pkg = read_package_json(files)
    dependencies = _section(pkg, "dependencies")
    scripts = _section(pkg, "scripts")
    return {
        "name": plan["name"],
        "type": plan["type"],
        "technologies": list(plan["technologies"]),
        "files": files,
        "structure": build_file_tree(files),
        "dependencies": dependencies,
        "scripts": scripts,
        "readme": generate_readme(plan, dependencies, scripts),
    }


# Feature extension

def determine_integration_points(feature: Feature) -> List[Dict[str, Any]]:
    if feature.type == "ui-component":
        return [{"type": "component", "location": "src/components", "description": f"Add {feature.name} component"}]
    if feature.type == "api-endpoint":
        return [{"type": "api", "location": "server/routes", "description": f"Add {feature.name} endpoint"}]
    return []


def plan_feature_integration(requirements: Requirements) -> Dict[str, Any]:
    plan: Dict[str, Any] = {
        "integration_points": [],
        "new_components": [],
        "modified_files": [],
        "dependencies": {},
    }
    for feature in requirements.features or []:
        plan["integration_points"].extend(determine_integration_points(feature))
        if feature.type == "ui-component":
            path = f"src/components/{feature.name}.jsx"
            plan["new_components"].append({"name": feature.name, "type": "component", "path": path})
            plan["modified_files"].append({"path": path, "action": "create"})
        elif feature.type == "api-endpoint":
            path = f"server/routes/{feature.name}.js"
            plan["new_components"].append({"name": feature.name, "type": "api", "path": path})
            plan["modified_files"].append({"path": path, "action": "create"})
            plan["dependencies"]["express"] = "^4.18.2"
    return plan


def merge_files(
    existing: Sequence[SourceFile],
    created: Sequence[Dict[str, Any]],
    modified: Sequence[Dict[str, Any]],
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Apply integrator edits to the existing files and separate out the new
    files produced by the creator.
    """
    changes = {file["path"]: file["content"] for file in modified}
    modified_files = [
        {"path": file.path, "content": changes[file.path]}
        for file in existing
        if file.path in changes
    ]
    existing_paths = {file.path for file in existing}
    extra = [file for file in modified if file["path"] not in existing_paths]
    return {"modified_files": modified_files, "new_files": list(created) + extra}


def project_files(
    existing: Sequence[SourceFile],
    merged: Dict[str, List[Dict[str, Any]]],
) -> List[Dict[str, Any]]:
    """Full file set after a merge, used for validation."""
    by_path = {file.path: file.content for file in existing}
    for file in merged["modified_files"] + merged["new_files"]:
        by_path[file["path"]] = file["content"]
    return [{"path": path, "content": content} for path, content in by_path.items()]
