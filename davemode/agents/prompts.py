"""
Prompt construction for agent calls.

Prompts are plain structured instructions asking for a JSON reply.
"""

import json
from typing import List

from davemode.agents.interface import AgentTask

SYSTEM_PROMPT = "You are an expert AI assistant specializing in software development and analysis."


def _render_files(task: AgentTask, heading: str) -> List[str]:
    lines = [heading, ""]
    for file in task.files:
        lines.append(f"File: {file.name or file.path}")
        lines.append(f"Content:\n```\n{file.content}\n```\n")
    return lines


def _context(label: str, value) -> str:
    return f"{label}: {json.dumps(value)}\n"


def build_analysis_prompt(task: AgentTask) -> str:
    lines = ["You are an expert code analyst. Analyze the provided code for issues, patterns, and improvements.\n"]
    if task.focus_area:
        lines.append(f"Focus area: {task.focus_area}\n")
    if task.files:
        lines.extend(_render_files(task, "Files to analyze:"))
    if task.issues:
        lines.append(_context("Issues already found", task.issues))
    if task.feature:
        lines.append(_context("Feature to integrate", task.feature))
    if task.architecture:
        lines.append(_context("Architecture context", task.architecture))
    if task.task:
        lines.append(f"Specific task: {task.task}\n")

    shape = [
        '  "issues": [{ "file": "path", "line": number, "severity": "critical|high|medium|low", '
        '"type": "security|performance|code-quality|accessibility", "message": "description" }]',
        '  "patterns": [{ "type": "pattern-type", "description": "description", "files": ["file1"] }]',
        '  "metrics": { "metric-name": value }',
        '  "recommendations": [{ "type": "recommendation-type", "description": "description", '
        '"priority": "high|medium|low" }]',
    ]
    if task.task == "integration-points":
        shape.append('  "integrationPoints": [{ "type": "component|api|style", "location": "path", "description": "..." }]')

    lines.append("Format your response as JSON with the following structure:")
    lines.append("{\n" + ",\n".join(shape) + "\n}")
    return "\n".join(lines)


_CREATION_SHAPES = {
    "component": '  "files": [{ "path": "file-path", "content": "file-content" }]',
    "generate-files": '  "files": [{ "path": "file-path", "content": "file-content" }]',
    "styling": '  "files": [{ "path": "file-path", "content": "css-content" }]',
    "testing": '  "files": [{ "path": "file-path", "content": "test-content" }]',
    "modify-files": '  "modifiedFiles": [{ "path": "path", "content": "modified-content" }]',
    "architecture": '  "architecture": { "structure": {}, "components": [] }',
}


def build_creation_prompt(task: AgentTask) -> str:
    lines = ["You are an expert code creator. Generate code based on the provided requirements.\n"]
    if task.task:
        lines.append(f"Task: {task.task}\n")
    if task.component:
        lines.append(_context("Component to create", task.component))
    if task.project_type:
        lines.append(f"Project type: {task.project_type}\n")
    if task.components:
        lines.append(_context("Components to style", task.components))
    if task.feature:
        lines.append(_context("Feature to implement", task.feature))
    if task.integration_points:
        lines.append(_context("Integration points", task.integration_points))
    if task.files:
        lines.extend(_render_files(task, "Existing files context:"))
    if task.architecture:
        lines.append(_context("Architecture context", task.architecture))
    if task.project_plan:
        lines.append(_context("Project plan", task.project_plan))

    lines.append("Generate the required code and format your response as JSON with the following structure:")
    shape = _CREATION_SHAPES.get(task.task or "", "")
    lines.append("{\n" + shape + ("\n" if shape else "") + "}")
    return "\n".join(lines)
