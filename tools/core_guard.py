"""
Core guard (static check).

Keeps the Black Box core (game/) a pure, reproducible computation that never
reaches out to a player, a network SDK or the wall clock.

Rules, per call or import found in core code:
- wall_clock_time: time.time()/monotonic()/perf_counter()/sleep(), datetime.now()/utcnow()
- global_rng: module-level random.* helpers (seeded random.Random instances are fine)
- unstable_hash: builtin hash(), which is salted per process
- forbidden_import: the ai player layer, LLM SDKs, HTTP clients, pygame

Examples:
  python tools/core_guard.py
  python tools/core_guard.py --paths game/tracer.py --json
"""

from __future__ import annotations

import argparse
import ast
import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Iterable


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DEFAULT_SCAN_DIRS = [
    PROJECT_ROOT / "game",
]

# (module, attribute) -> finding kind
_FORBIDDEN_CALLS = {
    **{("time", attr): "wall_clock_time" for attr in ("time", "monotonic", "perf_counter", "sleep")},
    **{("datetime", attr): "wall_clock_time" for attr in ("now", "utcnow", "today")},
    **{
        ("random", attr): "global_rng"
        for attr in ("random", "randint", "uniform", "choice", "choices", "shuffle", "seed", "randrange", "sample")
    },
}

_FORBIDDEN_IMPORTS = {"ai", "anthropic", "openai", "requests", "httpx", "pygame"}

_HINTS = {
    "wall_clock_time": "The core is a pure computation; pass timing in from the caller if it is ever needed.",
    "global_rng": "Draw from game.atoms.derive_rng(seed, tag) instead of the shared random module.",
    "unstable_hash": "hash() is salted per process; use zlib.crc32 for anything that must repeat.",
    "forbidden_import": "Collaborators call the core, never the reverse.",
}


@dataclass(slots=True)
class Finding:
    kind: str
    file: str
    line: int
    col: int
    detail: str

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col} [{self.kind}] {self.detail}"


def _display_path(file: Path) -> str:
    try:
        return str(file.resolve().relative_to(PROJECT_ROOT))
    except ValueError:
        return str(file)


def _dotted(node: ast.AST) -> list[str]:
    """Name/Attribute chain as parts, e.g. datetime.datetime.now -> ["datetime", "datetime", "now"]."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return []
    parts.append(node.id)
    return parts[::-1]


class _CoreVisitor(ast.NodeVisitor):
    def __init__(self, file_label: str):
        self.file_label = file_label
        self.findings: list[Finding] = []

    def _flag(self, kind: str, node: ast.AST, what: str) -> None:
        self.findings.append(
            Finding(
                kind=kind,
                file=self.file_label,
                line=int(getattr(node, "lineno", 0) or 0),
                col=int(getattr(node, "col_offset", 0) or 0),
                detail=f"{what}: {_HINTS[kind]}",
            )
        )

    def _check_module(self, node: ast.AST, module: str) -> None:
        if module.split(".")[0] in _FORBIDDEN_IMPORTS:
            self._flag("forbidden_import", node, f"import {module}")

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            self._check_module(node, alias.name)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        # Relative imports stay inside the core package.
        if node.level == 0 and node.module:
            self._check_module(node, node.module)

    def visit_Call(self, node: ast.Call) -> None:
        parts = _dotted(node.func)
        if parts == ["hash"]:
            self._flag("unstable_hash", node, "hash()")
        elif len(parts) >= 2:
            kind = _FORBIDDEN_CALLS.get((parts[-2], parts[-1]))
            if kind is not None:
                self._flag(kind, node, ".".join(parts) + "()")
        self.generic_visit(node)


def scan_source(src: str, file_path: Path) -> list[Finding]:
    label = _display_path(file_path)
    try:
        tree = ast.parse(src, filename=str(file_path))
    except SyntaxError as e:
        return [
            Finding(
                kind="parse_error",
                file=label,
                line=int(e.lineno or 0),
                col=int(e.offset or 0),
                detail=f"SyntaxError: {e.msg}",
            )
        ]
    visitor = _CoreVisitor(label)
    visitor.visit(tree)
    return visitor.findings


def scan_file(file_path: Path) -> list[Finding]:
    return scan_source(file_path.read_text(encoding="utf-8", errors="replace"), file_path)


def iter_py_files(roots: Iterable[Path]) -> list[Path]:
    found: set[Path] = set()
    for root in roots:
        if root.is_file() and root.suffix == ".py":
            found.add(root)
        elif root.is_dir():
            found.update(root.rglob("*.py"))
    return sorted(found)


def main() -> int:
    ap = argparse.ArgumentParser(description="Static purity guard for the Black Box core")
    ap.add_argument("--paths", nargs="*", default=[], help="Files or dirs to scan (default: game/)")
    ap.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    ns = ap.parse_args()

    roots = [Path(p) for p in ns.paths] if ns.paths else list(DEFAULT_SCAN_DIRS)
    findings = [f for path in iter_py_files(roots) for f in scan_file(path)]

    if ns.json:
        print(json.dumps({"findings": [f.to_dict() for f in findings]}, indent=2))
    elif findings:
        print(f"[core_guard] FAIL: {len(findings)} violation(s)")
        for finding in findings:
            print(f"- {finding}")
    else:
        print("[core_guard] PASS: no violations found")

    return 1 if findings else 0


if __name__ == "__main__":
    raise SystemExit(main())
