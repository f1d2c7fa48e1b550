"""
Data flow analysis over explicit seam definitions.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from sdd_mcp.analysis.matrix import longest_paths

# Rough per-hop latency used against latency budgets
HOP_LATENCY_MS = 50
FAN_IN_HOTSPOT = 3


def _directed(seam: dict[str, Any]) -> list[tuple[str, str]]:
    src, dst = seam["source"], seam["target"]
    flow = seam.get("data_flow", "BOTH")
    if flow == "OUT":
        return [(src, dst)]
    if flow == "IN":
        return [(dst, src)]
    return [(src, dst), (dst, src)]


def analyze_data_flows(
    seam_definitions: list[dict[str, Any]],
    performance_requirements: dict[str, Any] | None = None,
    include_optimizations: bool = True,
    analyze_bottlenecks: bool = True,
) -> dict[str, Any]:
    perf = performance_requirements or {}
    graph: dict[str, list[str]] = defaultdict(list)
    fan_in: dict[str, int] = defaultdict(int)
    flows = []

    for seam in seam_definitions:
        for src, dst in _directed(seam):
            if dst not in graph[src]:
                graph[src].append(dst)
                fan_in[dst] += 1
            graph.setdefault(dst, [])
        flows.append({
            "seam_name": seam["name"],
            "source": seam["source"],
            "target": seam["target"],
            "direction": seam.get("data_flow", "BOTH"),
            "input_type": seam.get("input_type"),
            "output_type": seam.get("output_type"),
        })

    # Type hand-offs: output of a seam feeding the next seam's input
    transformations = []
    missing_types = 0
    for seam in seam_definitions:
        if not seam.get("input_type") or not seam.get("output_type"):
            missing_types += 1
        for nxt in seam_definitions:
            if nxt is seam or nxt["source"] != seam["target"]:
                continue
            out_type, in_type = seam.get("output_type"), nxt.get("input_type")
            if out_type and in_type and out_type != in_type:
                transformations.append({
                    "from": out_type,
                    "to": in_type,
                    "at": seam["target"],
                    "between": [seam["name"], nxt["name"]],
                })

    paths = longest_paths(dict(graph), limit=1)
    longest = paths[0] if paths else []

    bottlenecks: list[dict[str, Any]] = []
    if analyze_bottlenecks:
        for node, count in sorted(fan_in.items()):
            if count >= FAN_IN_HOTSPOT:
                bottlenecks.append({
                    "component": node,
                    "kind": "fan_in_hotspot",
                    "message": f"{node} receives data from {count} sources",
                })
        for flow in flows:
            if flow["direction"] == "BOTH":
                bottlenecks.append({
                    "component": flow["target"],
                    "kind": "bidirectional_synchronization",
                    "message": f"{flow['seam_name']} synchronizes data in both directions",
                })
        max_latency = perf.get("max_latency")
        if max_latency is not None and longest:
            estimated = (len(longest) - 1) * HOP_LATENCY_MS
            if estimated > max_latency:
                bottlenecks.append({
                    "component": longest[-1],
                    "kind": "latency_budget",
                    "message": (
                        f"Chain {' -> '.join(longest)} needs ~{estimated}ms, "
                        f"budget is {max_latency}ms"
                    ),
                })

    optimizations: list[str] = []
    if include_optimizations:
        for node, count in sorted(fan_in.items()):
            if count >= 2:
                optimizations.append(f"Cache responses at {node} (fan-in {count})")
        if any(f["direction"] == "BOTH" for f in flows):
            optimizations.append("Batch bidirectional synchronization or switch to change events")
        if len(longest) > 3:
            optimizations.append(
                f"Make part of the chain {' -> '.join(longest)} asynchronous"
            )
        if perf.get("memory_constraints"):
            optimizations.append("Stream large payloads instead of buffering them")
        if perf.get("min_throughput"):
            optimizations.append("Add a queue in front of the slowest consumer to absorb bursts")
        if transformations:
            optimizations.append("Define shared types at hand-off points to remove transformations")

    consistency = 100 - 10 * len(transformations) - 5 * missing_types
    edges = sum(len(v) for v in graph.values())
    return {
        "flows": flows,
        "transformations": transformations,
        "bottlenecks": bottlenecks,
        "optimizations": optimizations,
        "longest_chain": longest,
        "metadata": {
            "total_flows": len(flows),
            "components": len(graph),
            "flow_complexity": round(edges / max(len(graph), 1), 2),
            "data_consistency_score": max(consistency, 0),
        },
    }
