"""
Component interaction matrix with critical paths and cycle detection.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

_EVENT_WORDS = ("event", "notify", "notification", "publish", "subscribe", "queue", "webhook")
_ASYNC_WORDS = ("async", "background", "schedule", "batch", "job")


def interaction_type(source: dict, target: dict) -> str:
    purpose = (source.get("purpose") or "").lower()
    if "orchestrat" in source["name"].lower() or source.get("type") == "orchestrator":
        return "control-flow"
    if target.get("type") in ("storage", "database"):
        return "data-sharing"
    if any(w in purpose for w in _EVENT_WORDS):
        return "event-driven"
    if any(w in purpose for w in _ASYNC_WORDS):
        return "asynchronous"
    return "synchronous"


def _edges(components: dict[str, dict], seams: list[dict]) -> tuple[list[tuple[str, str, str]], set[str]]:
    """Directed edges (source, target, via) and unknown dependency names."""
    edges: list[tuple[str, str, str]] = []
    external: set[str] = set()
    seen: set[tuple[str, str]] = set()

    def add(src: str, dst: str, via: str) -> None:
        if src == dst or (src, dst) in seen:
            return
        seen.add((src, dst))
        edges.append((src, dst, via))

    for comp in components.values():
        for dep in comp.get("dependencies") or []:
            if dep in components:
                add(comp["name"], dep, "dependency")
            else:
                external.add(dep)

    for seam in seams:
        participants = [p for p in seam.get("participants", []) if p in components]
        if len(participants) < 2:
            continue
        first, second = participants[0], participants[1]
        flow = seam.get("data_flow", "BOTH")
        if flow in ("OUT", "BOTH"):
            add(first, second, seam["name"])
        if flow in ("IN", "BOTH"):
            add(second, first, seam["name"])

    return edges, external


def find_cycles(graph: dict[str, list[str]]) -> list[list[str]]:
    """Elementary cycles found by DFS back edges (one per back edge)."""
    white, grey, black = 0, 1, 2
    color: dict[str, int] = defaultdict(int)
    stack: list[str] = []
    cycles: list[list[str]] = []
    seen_keys: set[frozenset] = set()

    def visit(node: str) -> None:
        color[node] = grey
        stack.append(node)
        for nxt in graph.get(node, []):
            if color[nxt] == grey:
                cycle = stack[stack.index(nxt):] + [nxt]
                key = frozenset(cycle)
                if key not in seen_keys:
                    seen_keys.add(key)
                    cycles.append(cycle)
            elif color[nxt] == white:
                visit(nxt)
        stack.pop()
        color[node] = black

    for node in sorted(graph):
        if color[node] == white:
            visit(node)
    return cycles


MAX_EXPLORED_PATHS = 5000


def longest_paths(graph: dict[str, list[str]], limit: int = 3) -> list[list[str]]:
    """
    Longest simple paths (by node count), at least two nodes long.

    Exploration stops after MAX_EXPLORED_PATHS maximal paths, so dense
    graphs get a best-effort answer.
    """
    best: list[list[str]] = []

    def walk(path: list[str]) -> None:
        if len(best) >= MAX_EXPLORED_PATHS:
            return
        extended = False
        for nxt in graph.get(path[-1], []):
            if nxt not in path:
                extended = True
                walk(path + [nxt])
        if not extended and len(path) >= 2:
            best.append(path)

    for start in sorted(graph):
        walk([start])

    best.sort(key=lambda p: (-len(p), p))
    unique: list[list[str]] = []
    for path in best:
        if not any(set(path) <= set(kept) for kept in unique):
            unique.append(path)
        if len(unique) == limit:
            break
    return unique


def generate_interaction_matrix(
    components: list[dict[str, Any]],
    seam_definitions: list[dict[str, Any]] | None = None,
    analysis_scope: str = "full",
    include_metrics: bool = False,
) -> dict[str, Any]:
    by_name = {c["name"]: c for c in components}
    edges, external = _edges(by_name, seam_definitions or [])

    graph: dict[str, list[str]] = {name: [] for name in by_name}
    fan_in: dict[str, int] = defaultdict(int)
    for src, dst, _ in edges:
        graph[src].append(dst)
        fan_in[dst] += 1

    critical_paths = longest_paths(graph)
    cycles = find_cycles(graph)
    isolated = [n for n in by_name if not graph[n] and not fan_in[n]]
    integration_points = [n for n in by_name if fan_in[n] + len(graph[n]) >= 3]

    if analysis_scope == "critical-path":
        scope = sorted({n for path in critical_paths for n in path})
    elif analysis_scope == "integration-points":
        scope = integration_points
    else:
        scope = list(by_name)

    matrix: dict[str, dict[str, str | None]] = {row: {col: None for col in scope} for row in scope}
    interactions = []
    for src, dst, via in edges:
        kind = interaction_type(by_name[src], by_name[dst])
        if src in matrix and dst in matrix[src]:
            matrix[src][dst] = kind
        interactions.append({"source": src, "target": dst, "interaction_type": kind, "via": via})

    n = len(by_name)
    possible = n * (n - 1) or 1
    result: dict[str, Any] = {
        "matrix": matrix,
        "interactions": interactions,
        "critical_paths": [" -> ".join(p) for p in critical_paths],
        "circular_dependencies": [" -> ".join(c) for c in cycles],
        "isolated_components": isolated,
        "integration_points": integration_points,
        "external_dependencies": sorted(external),
        "metadata": {
            "total_components": n,
            "total_interactions": len(edges),
            "complexity_score": round(len(edges) / possible * 100, 1),
            "analysis_scope": analysis_scope,
        },
    }

    if include_metrics:
        result["metrics"] = {
            name: {
                "fan_in": fan_in[name],
                "fan_out": len(graph[name]),
                "instability": round(
                    len(graph[name]) / (fan_in[name] + len(graph[name])), 2
                ) if fan_in[name] + len(graph[name]) else 0.0,
            }
            for name in by_name
        }
    return result
