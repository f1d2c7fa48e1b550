"""
Architecture diagrams for seam definitions.

Supported diagram types: flowchart, sequence, class (Mermaid) and
interaction_matrix (Markdown table). Seam status is stub, partial or
complete; a seam without a status counts as a stub.
"""

from __future__ import annotations

import html
import re
from typing import Any

STATUSES = ("stub", "partial", "complete")
DIAGRAM_TYPES = ("flowchart", "sequence", "class", "interaction_matrix")

STATUS_MARKERS = {"stub": "🔴", "partial": "🟡", "complete": "🟢"}

CLASS_DEFS = (
    "  classDef stub fill:#ffcccc,stroke:#B00020,color:#000000,stroke-width:2px\n"
    "  classDef partial fill:#fff3c4,stroke:#FFC107,color:#000000,stroke-width:2px\n"
    "  classDef complete fill:#c8e6c9,stroke:#388E3C,color:#000000,stroke-width:2px\n"
)

_HTML_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <script type="module">
    import mermaid from "https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.esm.min.mjs";
    mermaid.initialize({{ startOnLoad: true }});
  </script>
</head>
<body>
  <h1>{title}</h1>
  <pre class="mermaid">
{code}
  </pre>
</body>
</html>
"""


def sanitize_node_id(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def sanitize_label(label: str) -> str:
    return label.replace('"', "'")


def _status(seam: dict[str, Any]) -> str:
    return seam.get("status") or "stub"


def _worse(a: str, b: str) -> str:
    return a if STATUSES.index(a) <= STATUSES.index(b) else b


def unique_components(seams: list[dict[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for seam in seams:
        for participant in seam.get("participants", []):
            seen.setdefault(participant.strip(), None)
    return list(seen)


def component_status(seams: list[dict[str, Any]], components: list[str]) -> dict[str, str]:
    """Worst status among the seams each component takes part in."""
    result = {}
    for comp in components:
        status = "complete"
        for seam in seams:
            if comp in (p.strip() for p in seam.get("participants", [])):
                status = _worse(status, _status(seam))
        result[comp] = status
    return result


def flowchart(seams: list[dict[str, Any]], project_name: str) -> str:
    components = unique_components(seams)
    lines = [f"graph TD\n  %% Project: {project_name}\n", CLASS_DEFS]
    for comp, status in component_status(seams, components).items():
        node = sanitize_node_id(comp)
        lines.append(f'  {node}["{sanitize_label(comp)}"]\n')
        lines.append(f"  class {node} {status};\n")
    for seam in seams:
        participants = [p.strip() for p in seam.get("participants", [])]
        label = sanitize_label(seam["name"])
        if len(participants) >= 2:
            flow = seam.get("data_flow", "BOTH")
            arrow = "<--" if flow == "IN" else "-->" if flow == "OUT" else "---"
            lines.append(
                f'  {sanitize_node_id(participants[0])} {arrow}|"{label}"| '
                f"{sanitize_node_id(participants[1])}\n"
            )
        elif participants:
            node = sanitize_node_id(participants[0])
            lines.append(f'  {node} --o|"{label}"| {node}\n')
    return "".join(lines)


def sequence_diagram(seams: list[dict[str, Any]], project_name: str) -> str:
    lines = ["sequenceDiagram", f"  title {project_name}"]
    for comp in unique_components(seams):
        lines.append(f"  participant {sanitize_node_id(comp)} as {comp}")
    for seam in seams:
        participants = [p.strip() for p in seam.get("participants", [])]
        if len(participants) < 2:
            continue
        a, b = sanitize_node_id(participants[0]), sanitize_node_id(participants[1])
        purpose = sanitize_label(seam.get("purpose") or seam["name"])
        flow = seam.get("data_flow", "BOTH")
        if flow == "IN":
            lines.append(f"  {b}->>{a}: {purpose}")
        else:
            lines.append(f"  {a}->>{b}: {purpose}")
            if flow == "BOTH":
                lines.append(f"  {b}-->>{a}: {sanitize_label(seam['name'])} result")
    return "\n".join(lines) + "\n"


def class_diagram(seams: list[dict[str, Any]], project_name: str) -> str:
    lines = ["classDiagram", f"  %% Project: {project_name}"]
    for comp, status in component_status(seams, unique_components(seams)).items():
        lines.append(f"  class {sanitize_node_id(comp)} {{")
        lines.append(f"    <<{status}>>")
        lines.append("  }")
    for seam in seams:
        participants = [p.strip() for p in seam.get("participants", [])]
        if len(participants) < 2:
            continue
        a, b = sanitize_node_id(participants[0]), sanitize_node_id(participants[1])
        flow = seam.get("data_flow", "BOTH")
        arrow = "<--" if flow == "IN" else "-->" if flow == "OUT" else "--"
        lines.append(f"  {a} {arrow} {b} : {sanitize_label(seam['name'])}")
    return "\n".join(lines) + "\n"


def interaction_matrix_table(seams: list[dict[str, Any]]) -> str:
    """Markdown table of pairwise seam status; multiple seams keep the worst."""
    components = unique_components(seams)
    matrix: dict[str, dict[str, str]] = {r: {c: "" for c in components} for r in components}
    for seam in seams:
        participants = [p.strip() for p in seam.get("participants", [])]
        for i, src in enumerate(participants):
            for j, dst in enumerate(participants):
                if i == j:
                    continue
                prev = matrix[src][dst]
                matrix[src][dst] = _worse(prev, _status(seam)) if prev else _status(seam)

    rows = ["|   |" + "|".join(f" {c} " for c in components) + "|"]
    rows.append("|---" + "|---" * len(components) + "|")
    for row in components:
        cells = [
            "  " if row == col else f" {STATUS_MARKERS.get(matrix[row][col], '')} "
            for col in components
        ]
        rows.append(f"| {row} |" + "|".join(cells) + "|")
    return "\n".join(rows) + "\n"


def html_page(code: str, project_name: str) -> str:
    title = html.escape(project_name)
    return _HTML_PAGE.format(title=title, code=html.escape(code))


def architecture_metrics(seams: list[dict[str, Any]], summary: dict[str, int]) -> dict[str, float]:
    total_components = len(unique_components(seams))
    total_seams = len(seams)
    connections = sum(
        len(s.get("participants", [])) * (len(s.get("participants", [])) - 1) / 2 for s in seams
    )
    average = connections / total_seams if total_seams else 0.0
    complexity = total_seams * average / total_components if total_components else 0.0
    progress = (
        (summary["complete_count"] + summary["partial_count"] * 0.5) / total_seams * 100
        if total_seams else 0.0
    )
    return {
        "total_components": total_components,
        "total_seams": total_seams,
        "average_connections": round(average, 2),
        "complexity_score": round(complexity, 2),
        "implementation_progress": round(progress, 2),
    }


def visualize_architecture(
    seams: list[dict[str, Any]],
    project_name: str,
    diagram_type: str = "flowchart",
    include_metrics: bool = False,
    output_format: str = "mermaid",
) -> dict[str, Any]:
    """
    Render seams as a diagram with status summary and recommendations.

    output_format "html" embeds the Mermaid code in a standalone page;
    "all" returns both. Matrix tables are never wrapped in HTML.

    Raises:
        ValueError: On an empty seam list, blank project name or
            unknown diagram type
    """
    if not seams:
        raise ValueError("At least one seam definition is required")
    if not project_name or not project_name.strip():
        raise ValueError("Project name is required")
    if diagram_type not in DIAGRAM_TYPES:
        raise ValueError(f"Unknown diagram type '{diagram_type}'")

    counts = {status: 0 for status in STATUSES}
    for seam in seams:
        counts[_status(seam)] += 1
    summary = {
        "stub_count": counts["stub"],
        "partial_count": counts["partial"],
        "complete_count": counts["complete"],
        "total_seams": len(seams),
    }

    if diagram_type == "interaction_matrix":
        code = interaction_matrix_table(seams)
    elif diagram_type == "sequence":
        code = sequence_diagram(seams, project_name)
    elif diagram_type == "class":
        code = class_diagram(seams, project_name)
    else:
        code = flowchart(seams, project_name)

    diagram: dict[str, Any] = {"diagram_type": diagram_type, "mermaid_code": code}
    if output_format in ("html", "all") and diagram_type != "interaction_matrix":
        diagram["html_content"] = html_page(code, project_name)

    result: dict[str, Any] = {"diagrams": [diagram], "status_summary": summary}
    metrics = architecture_metrics(seams, summary) if include_metrics else None
    if metrics:
        result["metrics"] = metrics

    recommendations = []
    if summary["stub_count"]:
        recommendations.append(
            f"Focus on implementing the {summary['stub_count']} stub seam(s) to improve overall progress."
        )
    if metrics and metrics["complexity_score"] > 5:
        recommendations.append(
            f"The architecture complexity score ({metrics['complexity_score']}) is relatively high. "
            "Review component responsibilities and seam interactions for potential simplification."
        )
    if metrics and metrics["implementation_progress"] < 75:
        recommendations.append(
            f"Implementation progress is at {metrics['implementation_progress']}%. "
            "Accelerate development on partial and stub seams."
        )
    if not recommendations:
        recommendations.append(
            "Architecture visualization complete. Current metrics and status look reasonable."
        )
    result["recommendations"] = recommendations
    return result
