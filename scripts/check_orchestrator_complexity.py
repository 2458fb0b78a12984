#!/usr/bin/env python3
"""Simple complexity guard for application orchestrators."""

from __future__ import annotations

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
APPLICATION = ROOT / "src/asset_optimizer/application"
MAX_STATEMENTS = 40


def _violations(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    found: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
            stmt_count = len(node.body)
            if stmt_count > MAX_STATEMENTS:
                found.append(f"{path.name}:{node.name}: {stmt_count} statements")
    return found


def main() -> None:
    """Fail when any application-layer function exceeds the statement threshold."""
    violations: list[str] = []
    for path in sorted(APPLICATION.glob("*.py")):
        violations.extend(_violations(path))
    if violations:
        raise SystemExit(
            "Use-case complexity threshold exceeded:\n"
            + "\n".join(f"- {v}" for v in violations)
        )
    print("Orchestrator complexity check passed.")


if __name__ == "__main__":
    main()
