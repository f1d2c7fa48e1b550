"""
SDD compliance checks over TypeScript artifacts.

Files are classified by name (*.contract.ts, *.agent.ts / *.stub.ts,
*.test.ts) and checked with line-based rules. Errors cost 10 points,
warnings 3; a project is compliant when it has no errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Iterable

logger = logging.getLogger(__name__)

SKIP_DIRS = {"node_modules", ".git", "dist", "build", "coverage"}
MAX_FILES = 500


@dataclass(frozen=True)
class Violation:
    rule_id: str
    file: str
    line: int
    message: str
    severity: str


def classify(path: str) -> str | None:
    name = Path(path).name
    if name.endswith((".test.ts", ".spec.ts")):
        return "test"
    if name.endswith(".contract.ts"):
        return "contract"
    if name.endswith((".agent.ts", ".stub.ts")):
        return "stub"
    return None


_METHOD = re.compile(r"^\s*(?:public\s+|private\s+|protected\s+)?(?:async\s+)?(\w+)\s*\([^;]*$")
_ANY = re.compile(r":\s*any\b")


def _method_blocks(lines: list[str]) -> Iterable[tuple[int, str, list[str]]]:
    """(line_no, name, body_lines) for class methods, by brace counting."""
    i = 0
    while i < len(lines):
        match = _METHOD.match(lines[i])
        if not match or match.group(1) in ("if", "for", "while", "switch", "catch", "constructor"):
            i += 1
            continue
        start = i
        depth, opened = 0, False
        body = []
        while i < len(lines):
            depth += lines[i].count("{") - lines[i].count("}")
            opened = opened or "{" in lines[i]
            body.append(lines[i])
            i += 1
            if opened and depth <= 0:
                break
        yield start + 1, match.group(1), body


def stub_must_throw(path: str, lines: list[str]) -> list[Violation]:
    return [
        Violation("stub-must-throw-notimplementederror", path, line,
                  f"Stub method '{name}' must throw NotImplementedError", "error")
        for line, name, body in _method_blocks(lines)
        if not any("NotImplementedError" in b for b in body)
    ]


def stub_requires_blueprint(path: str, lines: list[str]) -> list[Violation]:
    return [
        Violation("stub-requires-blueprint-comment", path, line,
                  f"Stub method '{name}' should carry a '// Blueprint:' comment", "warning")
        for line, name, body in _method_blocks(lines)
        if not any("Blueprint:" in b for b in body)
    ]


def contract_uses_result(path: str, lines: list[str]) -> list[Violation]:
    if any("ContractResult" in line for line in lines):
        return []
    return [Violation("contract-must-use-contract-result", path, 1,
                      "Contract does not declare ContractResult return types", "error")]


def contract_avoid_any(path: str, lines: list[str]) -> list[Violation]:
    return [
        Violation("contract-method-avoid-any", path, n,
                  "Avoid 'any' in contract signatures", "warning")
        for n, line in enumerate(lines, start=1)
        if _ANY.search(line)
    ]


Rule = Callable[[str, list[str]], list[Violation]]

RULES: dict[str, tuple[Rule, ...]] = {
    "stub": (stub_must_throw, stub_requires_blueprint),
    "contract": (contract_uses_result, contract_avoid_any),
    "test": (),
}

PENALTY = {"error": 10, "warning": 3}


def collect_files(project_path: str | Path) -> dict[str, str]:
    """Relative path -> source for every classified TypeScript file."""
    root = Path(project_path)
    if not root.is_dir():
        raise FileNotFoundError(f"Project path '{project_path}' is not a directory")
    files: dict[str, str] = {}
    for path in sorted(root.rglob("*.ts")):
        if any(part in SKIP_DIRS for part in path.relative_to(root).parts):
            continue
        rel = path.relative_to(root).as_posix()
        if classify(rel) is None:
            continue
        files[rel] = path.read_text(encoding="utf-8", errors="replace")
        if len(files) >= MAX_FILES:
            logger.warning("Compliance scan stopped at %d files", MAX_FILES)
            break
    return files


def validate_compliance(
    files: dict[str, str],
    strict_mode: bool = False,
) -> dict[str, Any]:
    """
    Check artifacts against SDD rules.

    Args:
        files: Relative path -> source text
        strict_mode: Treat warnings as errors when deciding compliance

    Returns:
        violations, per-kind file counts, score (0-100), compliant flag
        and recommendations
    """
    violations: list[Violation] = []
    kinds = {"contract": [], "stub": [], "test": []}
    for path, source in files.items():
        kind = classify(path)
        if kind is None:
            continue
        kinds[kind].append(path)
        lines = source.splitlines()
        for rule in RULES[kind]:
            violations.extend(rule(path, lines))

    # Every contract should have a test next to it
    test_stems = {Path(p).name.split(".")[0] for p in kinds["test"]}
    for contract in kinds["contract"]:
        stem = Path(contract).name.split(".")[0]
        if stem not in test_stems:
            violations.append(Violation("contract-requires-test", contract, 1,
                                        f"No integration test found for '{stem}'", "warning"))

    errors = sum(1 for v in violations if v.severity == "error")
    warnings = len(violations) - errors
    score = max(100 - sum(PENALTY[v.severity] for v in violations), 0)
    compliant = errors == 0 and (not strict_mode or warnings == 0)

    recommendations = []
    if not files:
        recommendations.append("No SDD artifacts found; generate contracts and stubs first")
    if any(v.rule_id == "stub-must-throw-notimplementederror" for v in violations):
        recommendations.append("Make unimplemented stub methods throw NotImplementedError")
    if any(v.rule_id == "contract-method-avoid-any" for v in violations):
        recommendations.append("Replace 'any' in contracts with concrete types")
    if any(v.rule_id == "contract-requires-test" for v in violations):
        recommendations.append("Add integration tests for every contract")

    return {
        "compliant": compliant,
        "score": score,
        "files_checked": len(files),
        "artifacts": {k: len(v) for k, v in kinds.items()},
        "violations": [asdict(v) for v in violations],
        "error_count": errors,
        "warning_count": warnings,
        "recommendations": recommendations,
    }
