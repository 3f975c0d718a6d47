#!/usr/bin/env python3
"""
Fail if the request core imports the field/model layers built on top of it.
Checks all Python files under src/polarion_client/core/.
"""

from __future__ import annotations

import ast
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
CORE_DIR = REPO_ROOT / "src" / "polarion_client" / "core"

PACKAGE = "polarion_client"
ALLOWED_PREFIX = "polarion_client.core"


def is_forbidden(module: str) -> bool:
    if module != PACKAGE and not module.startswith(PACKAGE + "."):
        return False
    return not (module == ALLOWED_PREFIX or module.startswith(ALLOWED_PREFIX + "."))


def scan_file(path: Path) -> list[str]:
    errors: list[str] = []
    tree = ast.parse(path.read_text())
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                mod = alias.name
                if is_forbidden(mod):
                    errors.append(f"{path}: forbidden import '{mod}'")
        elif isinstance(node, ast.ImportFrom):
            mod = node.module or ""
            # "from .. import x" / "from ..client import x" leave core/
            if node.level >= 2:
                errors.append(f"{path}: forbidden relative import '{'.' * node.level}{mod}'")
            elif mod and is_forbidden(mod):
                errors.append(f"{path}: forbidden import '{mod}'")
    return errors


def main() -> int:
    violations: list[str] = []
    for py_file in CORE_DIR.rglob("*.py"):
        violations.extend(scan_file(py_file))

    if violations:
        for v in violations:
            print(v, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
