"""
Enhanced seam analysis: pattern matches with confidence and
cross-cutting concerns on top of the basic requirements analysis.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sdd_mcp.analysis.requirements import (
    extract_components,
    identify_seams,
    map_data_flows,
    split_sentences,
)


@dataclass(frozen=True)
class SeamPattern:
    name: str
    keywords: tuple[str, ...]
    purpose: str
    focus: str


SEAM_PATTERNS = (
    SeamPattern("DataFlow", ("data", "input", "output", "transform", "process"),
                "Handle data transformation and flow", "data_flows"),
    SeamPattern("UserInterface", ("ui", "interface", "user", "display", "view"),
                "Manage user interactions and presentation", "integrations"),
    SeamPattern("BusinessLogic", ("logic", "business", "rule", "validation", "calculate"),
                "Implement core business rules", "dependencies"),
    SeamPattern("DataStorage", ("storage", "database", "persist", "save", "retrieve"),
                "Manage data persistence", "data_flows"),
    SeamPattern("ExternalAPI", ("api", "external", "service", "integration", "third-party"),
                "Handle external service integration", "integrations"),
    SeamPattern("Configuration", ("config", "setting", "parameter", "environment"),
                "Manage application configuration", "dependencies"),
)

# concern -> (keywords, implementation style)
CROSS_CUTTING = {
    "logging": (("log", "audit", "trace"), "decorator"),
    "security": (("auth", "secure", "permission", "encrypt", "token", "password"), "service"),
    "validation": (("validat", "verify", "sanitiz", "check"), "decorator"),
    "monitoring": (("monitor", "metric", "health", "alert", "performance"), "aspect"),
    "error_handling": (("error", "fail", "retry", "recover", "exception"), "mixin"),
}

MIN_PATTERN_MATCHES = 2


def _count(text: str, keyword: str) -> int:
    return len(re.findall(rf"\b{re.escape(keyword)}", text))


def match_patterns(text: str) -> list[dict[str, Any]]:
    """Seam patterns with at least two keyword hits, strongest first."""
    lowered = text.lower()
    sentences = split_sentences(lowered)
    matches = []
    for pattern in SEAM_PATTERNS:
        hits = {k: _count(lowered, k) for k in pattern.keywords}
        total = sum(hits.values())
        if total < MIN_PATTERN_MATCHES:
            continue
        distinct = sum(1 for v in hits.values() if v)
        confidence = min(0.4 + 0.1 * distinct + 0.05 * total, 0.95)
        matches.append({
            "pattern": pattern.name,
            "purpose": pattern.purpose,
            "focus_area": pattern.focus,
            "confidence": round(confidence, 2),
            "matched_keywords": sorted(k for k, v in hits.items() if v),
            "matched_text": [
                s for s in sentences if any(re.search(rf"\b{re.escape(k)}", s) for k in pattern.keywords)
            ][:3],
        })
    matches.sort(key=lambda m: m["confidence"], reverse=True)
    return matches


def cross_cutting_concerns(text: str, component_names: list[str]) -> list[dict[str, Any]]:
    lowered = text.lower()
    sentences = split_sentences(lowered)
    concerns = []
    for concern, (keywords, implementation) in CROSS_CUTTING.items():
        relevant = [s for s in sentences if any(k in s for k in keywords)]
        if not relevant:
            continue
        affected = [
            name for name in component_names
            if any(name.lower() in s for s in relevant)
        ]
        concerns.append({
            "name": concern.replace("_", " ").title(),
            "concern_type": concern,
            "affected_components": affected or list(component_names),
            "implementation": implementation,
        })
    return concerns


def enhanced_seam_analysis(
    requirements_text: str,
    design_notes: str | None = None,
    analysis_depth: str = "detailed",
    focus_areas: list[str] | None = None,
) -> dict[str, Any]:
    """
    Seam analysis with pattern confidence.

    analysis_depth:
        basic         seams and pattern matches only
        detailed      plus component interactions and cross-cutting concerns
        comprehensive plus data flows
    focus_areas restricts pattern matches to the given areas.
    """
    text = requirements_text if not design_notes else f"{requirements_text}\n{design_notes}"
    components = extract_components(text)
    seams = identify_seams(components, text)
    patterns = match_patterns(text)
    if focus_areas:
        patterns = [p for p in patterns if p["focus_area"] in focus_areas]

    identified = [
        {**s.to_dict(), "source_pattern": "interaction"} for s in seams
    ]
    known = {s["name"] for s in identified}
    for match in patterns:
        name = f"{match['pattern']}Seam"
        if name in known:
            continue
        identified.append({
            "name": name,
            "participants": ["system", match["pattern"]],
            "data_flow": "BOTH",
            "purpose": match["purpose"],
            "confidence": match["confidence"],
            "source_pattern": match["pattern"],
        })

    result: dict[str, Any] = {
        "identified_seams": identified,
        "pattern_matches": patterns,
        "component_interactions": [],
        "cross_cutting_concerns": [],
        "data_flows": [],
    }

    if analysis_depth in ("detailed", "comprehensive"):
        result["component_interactions"] = [
            {
                "source": s.source,
                "target": s.target,
                "interaction_type": "synchronous" if s.data_flow != "IN" else "data-sharing",
                "frequency": "high" if s.confidence >= 0.85 else "medium" if s.confidence >= 0.7 else "low",
                "contract_required": True,
            }
            for s in seams
        ]
        if not focus_areas or "cross_cutting_concerns" in focus_areas:
            result["cross_cutting_concerns"] = cross_cutting_concerns(
                text, [c.name for c in components]
            )

    if analysis_depth == "comprehensive" or (focus_areas and "data_flows" in focus_areas):
        result["data_flows"] = map_data_flows(seams)

    confidences = [s["confidence"] for s in identified] or [0.0]
    result["analysis_metadata"] = {
        "confidence": round(sum(confidences) / len(confidences), 2),
        "patterns_found": [p["pattern"] for p in patterns],
        "analysis_depth": analysis_depth,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return result
