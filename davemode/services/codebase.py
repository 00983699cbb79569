"""
DaveMode Codebase Scanning

Marker-based inspection of uploaded source files: frameworks declared in
package.json, architecture/state/styling/testing hints in file contents,
entry points, data flow, component hierarchy and Express routes.
"""

import json
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

from davemode.logging import get_logger
from davemode.models.domain import AnalysisStrategy, StrategyApproach
from davemode.models.payloads import SourceFile

logger = get_logger(__name__)

UNKNOWN = "unknown"

FRAMEWORK_DEPENDENCIES = ("react", "vue", "angular", "express", "next")
FRONTEND_FRAMEWORKS = ("react", "vue", "angular")
BACKEND_FRAMEWORKS = ("express", "next")

_ROUTE = re.compile(r"app\.(get|post|put|delete)\(['\"`]([^'\"`]+)['\"`]")
_COMPONENT_SUFFIX = re.compile(r"\.(js|jsx|ts|tsx)$")


@dataclass
class CodePatterns:
    architecture: str = UNKNOWN
    styling: str = UNKNOWN
    state_management: str = UNKNOWN
    testing: str = UNKNOWN


@dataclass
class CodebaseAnalysis:
    """Summary of an uploaded codebase."""
    file_types: List[str] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    frameworks: List[str] = field(default_factory=list)
    patterns: CodePatterns = field(default_factory=CodePatterns)
    file_count: int = 0
    # Architecture details, filled by analyze_architecture
    entry_points: List[str] = field(default_factory=list)
    data_flow: Dict[str, List[str]] = field(default_factory=dict)
    component_hierarchy: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    api_endpoints: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _extension(file: SourceFile) -> str:
    return file.filename.rsplit(".", 1)[-1].lower()


def _scan_package_json(file: SourceFile, analysis: CodebaseAnalysis) -> None:
    try:
        pkg = json.loads(file.content)
    except ValueError:
        logger.warning("package_json_unparseable", extra={"path": file.path})
        return
    deps = pkg.get("dependencies") or {} if isinstance(pkg, dict) else {}
    if not isinstance(deps, dict):
        logger.warning("package_json_unparseable", extra={"path": file.path, "dependencies": type(deps).__name__})
        return
    analysis.dependencies.update(deps)
    analysis.frameworks.extend(name for name in FRAMEWORK_DEPENDENCIES if deps.get(name))


def _scan_content(content: str, patterns: CodePatterns) -> None:
    if "import React" in content or 'from "react"' in content:
        patterns.architecture = "react"
    if "import Vue" in content or 'from "vue"' in content:
        patterns.architecture = "vue"
    if "useState" in content or "useEffect" in content:
        patterns.state_management = "react-hooks"
    if "Redux" in content or "redux" in content:
        patterns.state_management = "redux"
    if "Vuex" in content:
        patterns.state_management = "vuex"
    if ".css" in content or ".scss" in content or ".less" in content:
        patterns.styling = "css"
    if "styled-components" in content or "emotion" in content:
        patterns.styling = "css-in-js"
    if "jest" in content or "mocha" in content or "cypress" in content:
        patterns.testing = "unit"


def analyze_codebase_patterns(files: Sequence[SourceFile]) -> CodebaseAnalysis:
    analysis = CodebaseAnalysis(file_count=len(files))
    extensions: Dict[str, int] = {}
    for file in files:
        ext = _extension(file)
        extensions[ext] = extensions.get(ext, 0) + 1
        if ext == "json" and "package.json" in file.filename:
            _scan_package_json(file, analysis)
        _scan_content(file.content, analysis.patterns)
    analysis.file_types = list(extensions)
    return analysis


def determine_project_type(analysis: CodebaseAnalysis) -> str:
    if any(fw in analysis.frameworks for fw in FRONTEND_FRAMEWORKS):
        return "web-app"
    if any(fw in analysis.frameworks for fw in BACKEND_FRAMEWORKS):
        return "api"
    if "java" in analysis.file_types or "kt" in analysis.file_types:
        return "mobile-app"
    return UNKNOWN


def plan_analysis_strategy(analysis: CodebaseAnalysis) -> AnalysisStrategy:
    """Heuristic analysis strategy; a learned pattern may override the agents."""
    strategy = AnalysisStrategy(primary_agent="deepseek-r1", approach="comprehensive")
    if any(fw in analysis.frameworks for fw in FRONTEND_FRAMEWORKS):
        strategy.primary_agent = "qwen3-coder"
        strategy.focus_areas.append("frontend-optimization")
    if any(fw in analysis.frameworks for fw in BACKEND_FRAMEWORKS):
        strategy.primary_agent = "deepseek-v3"
        strategy.focus_areas.append("backend-performance")
    if analysis.patterns.state_management != UNKNOWN:
        strategy.secondary_agents.append("deepseek-r1")
        strategy.focus_areas.append("state-management")
    if analysis.patterns.testing != UNKNOWN:
        strategy.secondary_agents.append("deepseek-v3")
        strategy.focus_areas.append("test-coverage")
    return strategy


def apply_learned_analysis(strategy: AnalysisStrategy, learned: AnalysisStrategy) -> AnalysisStrategy:
    if learned.approach != StrategyApproach.LEARNED:
        return strategy
    strategy.primary_agent = learned.primary_agent
    strategy.secondary_agents = list(learned.secondary_agents)
    strategy.approach = StrategyApproach.LEARNED
    strategy.confidence = learned.confidence
    return strategy


# Architecture

def find_entry_points(files: Sequence[SourceFile]) -> List[str]:
    entry_points: List[str] = []
    for file in files:
        if file.filename in ("index.js", "main.js", "app.js"):
            entry_points.append(file.path)
        if "ReactDOM.render" in file.content or "createRoot" in file.content:
            entry_points.append(file.path)
    return entry_points


def analyze_data_flow(files: Sequence[SourceFile]) -> Dict[str, List[str]]:
    flow: Dict[str, List[str]] = {"sources": [], "transformations": [], "sinks": []}
    for file in files:
        if "fetch(" in file.content or "axios." in file.content:
            flow["sources"].append(file.path)
        if "map(" in file.content or "filter(" in file.content:
            flow["transformations"].append(file.path)
        if "setState" in file.content or "useState" in file.content:
            flow["sinks"].append(file.path)
    return flow


def analyze_component_hierarchy(files: Sequence[SourceFile]) -> Dict[str, Dict[str, Any]]:
    hierarchy: Dict[str, Dict[str, Any]] = {}
    for file in files:
        if "components" in file.path or "pages" in file.path:
            name = _COMPONENT_SUFFIX.sub("", file.filename)
            hierarchy[name] = {"path": file.path, "children": []}
    return hierarchy


def find_api_endpoints(files: Sequence[SourceFile]) -> List[Dict[str, str]]:
    endpoints: List[Dict[str, str]] = []
    for file in files:
        if "routes" not in file.path and "api" not in file.path:
            continue
        for method, path in _ROUTE.findall(file.content):
            endpoints.append({"method": method.upper(), "path": path, "file": file.path})
    return endpoints


def analyze_architecture(files: Sequence[SourceFile]) -> CodebaseAnalysis:
    analysis = analyze_codebase_patterns(files)
    analysis.entry_points = find_entry_points(files)
    analysis.data_flow = analyze_data_flow(files)
    analysis.component_hierarchy = analyze_component_hierarchy(files)
    analysis.api_endpoints = find_api_endpoints(files)
    return analysis
