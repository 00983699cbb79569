"""
Synthesis of agent analysis results: issue de-duplication, severity
ordering, per-file grouping, summary counts and recommendations.
"""

from typing import Any, Dict, Iterable, List, Sequence

from davemode.models.payloads import SourceFile

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}
EFFORT_WEIGHTS = {"critical": 3.0, "high": 2.0, "medium": 1.0, "low": 0.5}

_DESCRIPTIONS = {
    "performance": "Optimize performance issues affecting {n} locations",
    "security": "Address security vulnerabilities in {n} files",
    "code-quality": "Improve code quality in {n} locations",
    "accessibility": "Fix accessibility issues in {n} components",
}


def remove_duplicate_issues(issues: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    unique = []
    for issue in issues:
        key = (issue.get("file"), issue.get("line"), issue.get("message"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def prioritize_issues(issues: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable sort by severity; unknown severities go last."""
    return sorted(issues, key=lambda issue: SEVERITY_ORDER.get(issue.get("severity"), len(SEVERITY_ORDER)))


def recommendation_priority(issues: Sequence[Dict[str, Any]]) -> str:
    severities = {issue.get("severity") for issue in issues}
    if "critical" in severities:
        return "critical"
    if "high" in severities:
        return "high"
    return "medium"


def recommendation_description(issue_type: str, issues: Sequence[Dict[str, Any]]) -> str:
    template = _DESCRIPTIONS.get(issue_type, "Resolve {type} issues in {n} locations")
    return template.format(n=len(issues), type=issue_type)


def estimate_effort(issues: Sequence[Dict[str, Any]]) -> str:
    effort = sum(EFFORT_WEIGHTS.get(issue.get("severity"), 0.0) for issue in issues)
    if effort < 2:
        return "low"
    if effort < 5:
        return "medium"
    return "high"


def generate_recommendations(issues: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    by_type: Dict[str, List[Dict[str, Any]]] = {}
    for issue in issues:
        by_type.setdefault(str(issue.get("type")), []).append(issue)
    return [
        {
            "type": issue_type,
            "priority": recommendation_priority(type_issues),
            "description": recommendation_description(issue_type, type_issues),
            "affected_files": list(dict.fromkeys(i.get("file") for i in type_issues)),
            "estimated_effort": estimate_effort(type_issues),
        }
        for issue_type, type_issues in by_type.items()
    ]


def synthesize_analysis_results(
    results: Sequence[Dict[str, Any]],
    files: Sequence[SourceFile],
) -> Dict[str, Any]:
    all_issues = [issue for result in results for issue in (result.get("issues") or []) if isinstance(issue, dict)]
    issues = prioritize_issues(remove_duplicate_issues(all_issues))

    by_file: Dict[str, List[Dict[str, Any]]] = {}
    for issue in issues:
        by_file.setdefault(str(issue.get("file")), []).append(issue)

    def count(severity: str) -> int:
        return sum(1 for issue in issues if issue.get("severity") == severity)

    summary = {
        "total_files": len(files),
        "total_issues": len(issues),
        "critical_issues": count("critical"),
        "high_issues": count("high"),
        "medium_issues": count("medium"),
        "low_issues": count("low"),
        "files_with_issues": len(by_file),
    }
    return {
        "summary": summary,
        "issues": issues,
        "issues_by_file": by_file,
        "recommendations": generate_recommendations(issues),
    }
