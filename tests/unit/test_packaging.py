"""Tests for declared dependencies in pyproject.toml."""

import ast
import re
import tomllib
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
TEST_ONLY = {"pytest", "pytest-asyncio", "httpx"}


def requirement_names(requirements: list[str]) -> set[str]:
    return {re.split(r"[\[<>=!~ ]", r, maxsplit=1)[0].lower() for r in requirements}


def imported_modules(paths) -> set[str]:
    found = set()
    for path in paths:
        for node in ast.walk(ast.parse(path.read_text(encoding="utf-8"))):
            if isinstance(node, ast.Import):
                found.update(alias.name.split(".")[0] for alias in node.names)
            elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
                found.add(node.module.split(".")[0])
    return found


def load_project() -> dict:
    with open(ROOT / "pyproject.toml", "rb") as f:
        return tomllib.load(f)["project"]


def test_test_libraries_stay_in_test_extra():
    project = load_project()
    runtime = requirement_names(project["dependencies"])
    extra = requirement_names(project["optional-dependencies"]["test"])

    assert not runtime & TEST_ONLY
    assert TEST_ONLY <= extra


def test_package_does_not_import_test_libraries():
    imported = imported_modules([*(ROOT / "stockledger").rglob("*.py"), ROOT / "manage.py"])
    assert not imported & {"pytest", "pytest_asyncio", "httpx"}
