"""
Seam readiness validation before contract generation.

Each seam starts at 100 and loses points per issue. Issues are
"critical" (blocks generation), "warning" or "info". A seam is ready
when it has no critical issues and its score reaches READY_THRESHOLD.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Any

from sdd_mcp.analysis.matrix import find_cycles

READY_THRESHOLD = 70
MIN_DESCRIPTION_LENGTH = 10

PENALTIES = {"critical": 40, "warning": 15, "info": 5}

_VAGUE_TYPES = {"any", "object", "unknown", "data", "json"}


def _issue(severity: str, field: str, message: str) -> dict[str, str]:
    return {"severity": severity, "field": field, "message": message}


def _seam_issues(seam: dict[str, Any], level: str, strict: bool) -> list[dict[str, str]]:
    issues = []
    name = seam.get("name") or ""
    description = seam.get("description") or ""
    source = seam.get("source_component") or ""
    target = seam.get("target_component") or ""

    if not name:
        issues.append(_issue("critical", "name", "Seam name is required"))
    if not source:
        issues.append(_issue("critical", "source_component", "Source component is required"))
    if not target:
        issues.append(_issue("critical", "target_component", "Target component is required"))
    if source and source == target:
        issues.append(_issue("critical", "target_component", "Seam connects a component to itself"))
    if len(description.strip()) < MIN_DESCRIPTION_LENGTH:
        issues.append(_issue(
            "critical", "description",
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters",
        ))

    if level == "critical-only":
        return issues

    for field in ("input_type", "output_type"):
        value = seam.get(field)
        if not value:
            issues.append(_issue(
                "critical" if strict else "warning", field,
                f"{field} is not defined",
            ))
        elif value.strip().lower() in _VAGUE_TYPES:
            issues.append(_issue("warning", field, f"{field} '{value}' is too generic for a contract"))

    scenarios = seam.get("error_scenarios") or []
    if not scenarios:
        issues.append(_issue(
            "critical" if strict else "warning", "error_scenarios",
            "No error scenarios defined",
        ))

    if level == "comprehensive":
        if name and not re.match(r"^[A-Za-z][A-Za-z0-9_\- ]*$", name):
            issues.append(_issue("info", "name", "Seam name should start with a letter and avoid symbols"))
        if scenarios and not any("timeout" in s.lower() for s in scenarios):
            issues.append(_issue("info", "error_scenarios", "Consider a timeout scenario"))
        if len(scenarios) == 1:
            issues.append(_issue("info", "error_scenarios", "Only one error scenario defined"))

    return issues


def _score(issues: list[dict[str, str]]) -> int:
    return max(100 - sum(PENALTIES[i["severity"]] for i in issues), 0)


def validate_seam_readiness(
    seam_definitions: list[dict[str, Any]],
    validation_level: str = "comprehensive",
    strict_mode: bool = False,
    check_dependencies: bool = True,
) -> dict[str, Any]:
    results = []
    for seam in seam_definitions:
        issues = _seam_issues(seam, validation_level, strict_mode)
        score = _score(issues)
        critical = any(i["severity"] == "critical" for i in issues)
        results.append({
            "seam_name": seam.get("name"),
            "ready": not critical and score >= READY_THRESHOLD,
            "score": score,
            "issues": issues,
        })

    circular: list[str] = []
    duplicates: list[str] = []
    if check_dependencies:
        graph: dict[str, list[str]] = defaultdict(list)
        for seam in seam_definitions:
            src, dst = seam.get("source_component"), seam.get("target_component")
            if src and dst and src != dst and dst not in graph[src]:
                graph[src].append(dst)
        circular = [" -> ".join(c) for c in find_cycles(dict(graph))]

        counts: dict[str, int] = defaultdict(int)
        for seam in seam_definitions:
            counts[seam.get("name") or ""] += 1
        duplicates = sorted(n for n, c in counts.items() if n and c > 1)

    overall = round(sum(r["score"] for r in results) / len(results)) if results else 0
    if circular:
        overall = max(overall - 10, 0)

    recommendations = []
    for result in results:
        fields = sorted({i["field"] for i in result["issues"] if i["severity"] != "info"})
        if fields:
            recommendations.append(f"{result['seam_name']}: define {', '.join(fields)}")
    for cycle in circular:
        recommendations.append(f"Break the circular dependency {cycle}")
    for name in duplicates:
        recommendations.append(f"Seam name '{name}' is used more than once")

    ready = sum(1 for r in results if r["ready"])
    return {
        "seams": results,
        "overall_score": overall,
        "ready_count": ready,
        "total_seams": len(results),
        "all_ready": ready == len(results) and not circular and not duplicates,
        "circular_dependencies": circular,
        "duplicate_names": duplicates,
        "recommendations": recommendations,
        "validation_level": validation_level,
        "strict_mode": strict_mode,
    }
