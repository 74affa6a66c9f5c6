"""Architecture boundary checks between domain, parser and runtime layers."""

from __future__ import annotations

import ast
from pathlib import Path

_PACKAGE = Path(__file__).resolve().parents[1]


def _imports(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    result: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                result.append(alias.name)
        elif isinstance(node, ast.ImportFrom):
            base = "." * node.level + (node.module or "")
            result.append(base)
    return result


def test_domain_does_not_import_runtime_or_receipt() -> None:
    violations: list[str] = []
    for path in sorted((_PACKAGE / "domain").rglob("*.py")):
        for mod in _imports(path):
            if mod.startswith(("expensescan.runtime", "expensescan.receipt")):
                violations.append(f"{path}: {mod}")
    assert not violations, "Domain -> outer layer import violations:\n" + "\n".join(violations)


def test_text_parser_has_no_image_or_network_dependencies() -> None:
    parser_files = sorted((_PACKAGE / "receipt" / "ocr_parser").rglob("*.py"))
    parser_files.append(_PACKAGE / "receipt" / "ocr_result_parser.py")
    violations: list[str] = []
    for path in parser_files:
        for mod in _imports(path):
            if mod.split(".")[0] in {"PIL", "numpy", "httpx", "pytesseract"}:
                violations.append(f"{path}: {mod}")
    assert not violations, "Text parser must stay pure:\n" + "\n".join(violations)
