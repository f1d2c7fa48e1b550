"""
Analysis engines behind the SDD tools.

Pure functions over plain dicts and dataclasses; no registry or router
access. Tool handlers in sdd_mcp.tools wrap these.
"""

from sdd_mcp.analysis.compliance import collect_files, validate_compliance
from sdd_mcp.analysis.enhanced import enhanced_seam_analysis
from sdd_mcp.analysis.flows import analyze_data_flows
from sdd_mcp.analysis.matrix import find_cycles, generate_interaction_matrix
from sdd_mcp.analysis.readiness import validate_seam_readiness
from sdd_mcp.analysis.requirements import (
    Component,
    DetectedSeam,
    analyze_requirements,
    extract_components,
    identify_seams,
)
from sdd_mcp.analysis.visualize import visualize_architecture

__all__ = [
    "Component",
    "DetectedSeam",
    "analyze_data_flows",
    "analyze_requirements",
    "collect_files",
    "enhanced_seam_analysis",
    "extract_components",
    "find_cycles",
    "generate_interaction_matrix",
    "identify_seams",
    "validate_compliance",
    "validate_seam_readiness",
    "visualize_architecture",
]
