"""
Requirements analysis: components and seams from PRD text.

Keyword heuristics only. A component is any known keyword mentioned in
the text; a seam is a pair of components with a known interaction
pattern, or two components mentioned in the same text.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from itertools import combinations
from typing import Any

from sdd_mcp.schemas import SeamDefinition

# keyword -> (component name, component type)
COMPONENT_KEYWORDS: dict[str, tuple[str, str]] = {
    "user": ("User", "interface"),
    "admin": ("Admin", "interface"),
    "authentication": ("Auth", "service"),
    "auth": ("Auth", "service"),
    "database": ("Database", "storage"),
    "storage": ("Storage", "storage"),
    "api": ("Api", "service"),
    "server": ("Server", "service"),
    "client": ("Client", "component"),
    "service": ("Service", "service"),
    "manager": ("Manager", "service"),
    "handler": ("Handler", "service"),
    "controller": ("Controller", "service"),
    "dashboard": ("Dashboard", "interface"),
    "notification": ("Notification", "service"),
    "payment": ("Payment", "service"),
    "system": ("System", "component"),
    "module": ("Module", "component"),
    "agent": ("Agent", "component"),
}

# (first, second) -> (interaction, confidence)
INTERACTION_PATTERNS: list[tuple[tuple[str, str], str, float]] = [
    (("user", "auth"), "authentication", 0.9),
    (("auth", "database"), "data_storage", 0.8),
    (("api", "database"), "data_access", 0.9),
    (("user", "dashboard"), "user_interface", 0.8),
    (("admin", "system"), "management", 0.7),
    (("api", "service"), "service_call", 0.7),
    (("service", "notification"), "messaging", 0.7),
    (("payment", "api"), "service_call", 0.8),
]

SEAM_PREFIXES = {
    "authentication": "Auth",
    "data_storage": "DataStore",
    "data_access": "DataAccess",
    "user_interface": "UI",
    "management": "Manage",
    "service_call": "Service",
    "messaging": "Notify",
    "collaboration": "Collab",
}

DATA_TYPES = {
    "authentication": ("UserCredentials", "AuthToken", "credential_validation"),
    "data_storage": ("EntityData", "StorageResult", "data_serialization"),
    "data_access": ("QueryRequest", "QueryResult", "data_retrieval"),
    "user_interface": ("UserInput", "UIResponse", "interface_rendering"),
    "management": ("AdminCommand", "SystemState", "administrative_action"),
    "service_call": ("ServiceRequest", "ServiceResponse", "business_logic"),
    "messaging": ("MessageRequest", "DeliveryReceipt", "message_dispatch"),
    "collaboration": ("CollaborationData", "CollaborationResult", "data_coordination"),
}

TRANSFORMATION_STEPS = {
    "credential_validation": ["input_sanitization", "credential_lookup", "hash_verification", "token_generation"],
    "data_serialization": ["validation", "normalization", "serialization", "storage"],
    "data_retrieval": ["query_parsing", "data_access", "result_formatting", "response_packaging"],
    "interface_rendering": ["data_binding", "template_processing", "rendering", "client_delivery"],
    "administrative_action": ["permission_check", "action_validation", "execution", "audit_logging"],
    "business_logic": ["input_validation", "business_processing", "result_computation", "output_formatting"],
    "message_dispatch": ["recipient_resolution", "message_formatting", "delivery", "receipt_tracking"],
    "data_coordination": ["data_synchronization", "conflict_resolution", "consistency_check", "propagation"],
}

COMPLEX_INTERACTIONS = {"authentication", "data_storage", "management"}

# Lower = implement first
_DEPENDENCY_SCORES = [
    ("database", 1), ("storage", 1), ("auth", 2), ("api", 3), ("service", 4),
    ("manager", 5), ("system", 6), ("dashboard", 8), ("user", 9), ("admin", 10),
]

PHASES = [
    ("Foundation", lambda c: c.type == "storage"),
    ("Core Services", lambda c: c.type == "service"),
    ("Business Logic", lambda c: c.type == "component"),
    ("User Interfaces", lambda c: c.type == "interface"),
]


@dataclass
class Component:
    name: str
    type: str
    purpose: str
    dependencies: list[str] = field(default_factory=list)
    confidence: float = 0.8

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DetectedSeam:
    name: str
    participants: list[str]
    data_flow: str
    purpose: str
    source: str
    target: str
    interaction_type: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_seam_definition(self) -> SeamDefinition:
        return SeamDefinition(
            name=self.name,
            participants=list(self.participants),
            data_flow=self.data_flow,
            purpose=self.purpose,
        )


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in re.split(r"[.!?\n]+", text) if s.strip()]


def _mentions(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}", text) is not None


def extract_components(text: str) -> list[Component]:
    """Components mentioned in the text, in keyword order."""
    lowered = text.lower()
    sentences = split_sentences(lowered)
    found: dict[str, Component] = {}

    for keyword, (name, kind) in COMPONENT_KEYWORDS.items():
        if name in found or not _mentions(lowered, keyword):
            continue
        context = next((s for s in sentences if _mentions(s, keyword)), None)
        found[name] = Component(
            name=name,
            type=kind,
            purpose=(context or f"Handles {keyword} functionality")[:100],
        )

    if not found:
        return [Component(name="System", type="service", purpose="Main system component", confidence=0.5)]
    return list(found.values())


def _match_interaction(first: Component, second: Component, text: str) -> tuple[str, float] | None:
    a, b = first.name.lower(), second.name.lower()
    for (x, y), interaction, confidence in INTERACTION_PATTERNS:
        if (x in a and y in b) or (y in a and x in b):
            return interaction, confidence
    # Mentioned in the same sentence
    for sentence in split_sentences(text):
        if _mentions(sentence, a) and _mentions(sentence, b):
            return "collaboration", 0.6
    return None


def determine_data_flow(first: Component, second: Component) -> str:
    pair = (first.type, second.type)
    if pair in (("interface", "service"), ("service", "storage")):
        return "OUT"
    if pair in (("service", "interface"), ("storage", "service")):
        return "IN"
    return "BOTH"


def identify_seams(components: list[Component], text: str) -> list[DetectedSeam]:
    """Seams between component pairs, plus standard layer seams."""
    lowered = text.lower()
    seams: list[DetectedSeam] = []

    for first, second in combinations(components, 2):
        match = _match_interaction(first, second, lowered)
        if match is None:
            continue
        interaction, confidence = match
        prefix = SEAM_PREFIXES.get(interaction, "Connect")
        seams.append(DetectedSeam(
            name=f"{prefix}{first.name}{second.name}",
            participants=[first.name, second.name],
            data_flow=determine_data_flow(first, second),
            purpose=f"Handle communication between {first.name} and {second.name} for {interaction}",
            source=first.name,
            target=second.name,
            interaction_type=interaction,
            confidence=confidence,
        ))
        if second.name not in first.dependencies:
            first.dependencies.append(second.name)

    seams.extend(_standard_layer_seams(components))

    if not seams and len(components) >= 2:
        first, second = components[0], components[1]
        seams.append(DetectedSeam(
            name="SystemIntegration",
            participants=[first.name, second.name],
            data_flow="BOTH",
            purpose="Basic system integration between core components",
            source=first.name,
            target=second.name,
            interaction_type="collaboration",
            confidence=0.5,
        ))
    return seams


def _standard_layer_seams(components: list[Component]) -> list[DetectedSeam]:
    interfaces = [c for c in components if c.type == "interface"]
    services = [c for c in components if c.type == "service"]
    storage = [c for c in components if c.type == "storage"]
    seams = []
    if interfaces and services:
        seams.append(DetectedSeam(
            name="UIServiceLayer",
            participants=[interfaces[0].name, services[0].name],
            data_flow="BOTH",
            purpose="Standard UI to service layer communication",
            source=interfaces[0].name,
            target=services[0].name,
            interaction_type="service_call",
            confidence=0.9,
        ))
    if services and storage:
        seams.append(DetectedSeam(
            name="ServiceDataLayer",
            participants=[services[0].name, storage[0].name],
            data_flow="BOTH",
            purpose="Standard service to data layer communication",
            source=services[0].name,
            target=storage[0].name,
            interaction_type="data_access",
            confidence=0.9,
        ))
    return seams


# =============================================================================
# Data flow mapping
# =============================================================================


def flow_complexity(seam: DetectedSeam) -> str:
    score = 2 if seam.data_flow == "BOTH" else 1
    score += 2 if seam.interaction_type in COMPLEX_INTERACTIONS else 1
    if len(seam.participants) > 2:
        score += 1
    if score <= 2:
        return "low"
    if score <= 4:
        return "medium"
    return "high"


def flow_bottlenecks(seam: DetectedSeam) -> list[str]:
    participants = [p.lower() for p in seam.participants]
    found = []
    if any("database" in p or "storage" in p for p in participants):
        found.append("database_io")
    if seam.interaction_type == "authentication":
        found.append("auth_validation")
    if any(p in ("user", "dashboard") for p in participants):
        found.append("user_interface_rendering")
    if seam.data_flow == "BOTH":
        found.append("bidirectional_synchronization")
    return found


def _throughput(seam: DetectedSeam) -> str:
    if any("user" in p.lower() for p in seam.participants):
        return "medium"
    if seam.interaction_type == "data_storage":
        return "high"
    if seam.interaction_type == "authentication":
        return "low"
    return "medium"


def _error_handling(seam: DetectedSeam) -> str:
    if seam.interaction_type == "authentication":
        return "fail_secure_with_retry"
    if seam.interaction_type == "data_storage":
        return "transactional_rollback"
    if any("user" in p.lower() for p in seam.participants):
        return "graceful_degradation"
    return "standard_error_propagation"


def _caching(seam: DetectedSeam) -> list[str]:
    return {
        "data_access": ["query_result_caching"],
        "authentication": ["token_caching"],
        "user_interface": ["static_content_caching"],
    }.get(seam.interaction_type, [])


def map_data_flows(seams: list[DetectedSeam]) -> list[dict[str, Any]]:
    flows = []
    for seam in seams:
        input_type, output_type, transformation = DATA_TYPES.get(
            seam.interaction_type, DATA_TYPES["collaboration"]
        )
        flows.append({
            "seam_name": seam.name,
            "source": seam.source,
            "target": seam.target,
            "input_type": input_type,
            "output_type": output_type,
            "transformation": transformation,
            "direction": seam.data_flow,
            "complexity": flow_complexity(seam),
            "estimated_throughput": _throughput(seam),
            "potential_bottlenecks": flow_bottlenecks(seam),
            "transformation_steps": TRANSFORMATION_STEPS.get(
                transformation, ["input_processing", "transformation", "output_generation"]
            ),
            "error_handling": _error_handling(seam),
            "caching_opportunities": _caching(seam),
        })
    return flows


# =============================================================================
# Ordering and recommendations
# =============================================================================


def dependency_score(component: Component) -> int:
    name = component.name.lower()
    for keyword, score in _DEPENDENCY_SCORES:
        if keyword in name:
            return score
    return 7


def implementation_order(components: list[Component]) -> list[dict[str, Any]]:
    """Components grouped into implementation phases, foundation first."""
    phases = []
    placed: set[str] = set()
    for title, belongs in PHASES:
        members = sorted((c for c in components if belongs(c)), key=dependency_score)
        names = [c.name for c in members if c.name not in placed]
        placed.update(names)
        phases.append({"phase": title, "components": names})
    leftovers = [c.name for c in components if c.name not in placed]
    if leftovers:
        phases[-1]["components"].extend(leftovers)
    return phases


def recommendations(components: list[Component], seams: list[DetectedSeam]) -> list[str]:
    names = {c.name.lower() for c in components}
    types = {c.type for c in components}
    bidirectional = sum(1 for s in seams if s.data_flow == "BOTH")
    recs = []

    if "auth" in names and "storage" in types and "api" in names:
        recs.append("Use a 3-layer architecture: presentation, business, data")
        recs.append("Use stateless tokens for authentication across services")
    if len(seams) > 20:
        recs.append("Consider splitting into services; add an API gateway for coordination")
    else:
        recs.append("A single deployable is adequate for the current number of seams")
    if bidirectional > len(seams) / 2:
        recs.append("Many bidirectional seams: define request and response contracts separately")
    if "interface" in types:
        recs.append("Keep UI components behind service contracts; never reach storage directly")
    if "auth" in names:
        recs.append("Implement the Auth seams first and test failure paths (fail secure)")
    recs.append("Write contracts for every seam before implementing components")
    return recs


def confidence_score(text: str, components: list[Component], seams: list[DetectedSeam]) -> float:
    """Rough confidence in [0, 1] from text length and detections."""
    words = len(text.split())
    score = 0.3
    score += min(words / 200, 0.3)
    score += min(len(components) * 0.05, 0.2)
    score += min(len(seams) * 0.04, 0.2)
    return round(min(score, 1.0), 2)


def complexity_label(components: list[Component], seams: list[DetectedSeam]) -> str:
    size = len(components) + len(seams)
    if size <= 5:
        return "low"
    if size <= 12:
        return "medium"
    return "high"


def analyze_requirements(text: str) -> dict[str, Any]:
    """Full requirements analysis of a PRD."""
    components = extract_components(text)
    seams = identify_seams(components, text)
    return {
        "components": [c.to_dict() for c in components],
        "seams": [s.to_dict() for s in seams],
        "data_flows": map_data_flows(seams),
        "implementation_order": implementation_order(components),
        "recommendations": recommendations(components, seams),
        "analysis_metadata": {
            "total_components": len(components),
            "total_seams": len(seams),
            "complexity": complexity_label(components, seams),
            "confidence": confidence_score(text, components, seams),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
