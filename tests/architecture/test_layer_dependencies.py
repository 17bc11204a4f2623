"""
Architecture tests to enforce layer boundaries.

Rules enforced:
- finops/domain cannot import frameworks, application or infrastructure
- finops/application cannot import infrastructure or the API
- finops/infrastructure can import application and domain, never the API
"""

import ast
import os
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.parent.parent
PACKAGE = ROOT / "finops"


def get_python_files(directory: Path) -> list[Path]:
    """Get all Python files in a directory recursively."""
    python_files = []
    if not directory.exists():
        return python_files

    for root, dirs, files in os.walk(directory):
        # Skip __pycache__ directories
        dirs[:] = [d for d in dirs if d != "__pycache__"]

        for file in files:
            if file.endswith(".py"):
                python_files.append(Path(root) / file)

    return python_files


def extract_imports(file_path: Path) -> set[str]:
    """Extract all absolute import targets from a Python file."""
    imports = set()

    try:
        with open(file_path, encoding="utf-8") as f:
            tree = ast.parse(f.read())
    except (SyntaxError, UnicodeDecodeError) as e:
        pytest.fail(f"Failed to parse {file_path}: {e}")

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name)
        elif isinstance(node, ast.ImportFrom):
            # Relative imports stay inside their own package
            if node.level > 0 or not node.module:
                continue
            imports.add(node.module)

    return imports


def is_framework_import(import_name: str) -> bool:
    """Check if an import is from a framework (violating domain purity)."""
    framework_prefixes = [
        "fastapi",
        "starlette",
        "pydantic",
        "sqlalchemy",
        "alembic",
        "jwt",
        "bcrypt",
        "cryptography",
        "uvicorn",
        "httpx",
        "pytest",
        "hypothesis",
        "structlog",  # Even logging frameworks should be abstracted
    ]

    # NOTE: bleach is allowed in the domain; cell sanitization is a
    # business rule of the spreadsheet import and bleach is its HTML cleaner.

    return any(import_name == prefix or import_name.startswith(f"{prefix}.") for prefix in framework_prefixes)


def collect_violations(layer: str, forbidden) -> list[str]:
    violations = []
    for file_path in get_python_files(PACKAGE / layer):
        for import_name in extract_imports(file_path):
            if forbidden(import_name):
                violations.append(f"{file_path.relative_to(ROOT)}: imports {import_name}")
    return violations


def assert_no_violations(violations: list[str], rule: str) -> None:
    if violations:
        violation_list = "\n".join(sorted(violations))
        pytest.fail(f"{rule}:\n{violation_list}")


class TestDomainLayerPurity:
    """Test that the domain layer has no framework or outer-layer dependencies."""

    def test_domain_has_no_framework_imports(self):
        violations = collect_violations("domain", is_framework_import)
        assert_no_violations(violations, "Domain layer imports framework code")

    def test_domain_does_not_import_outer_layers(self):
        def outer(name: str) -> bool:
            return name.startswith(("finops.application", "finops.infrastructure", "apps"))

        violations = collect_violations("domain", outer)
        assert_no_violations(violations, "Domain layer imports application, infrastructure or API code")


class TestApplicationLayerBoundaries:
    """Application code only talks to the domain, shared utilities and its own ports."""

    def test_application_does_not_import_infrastructure(self):
        def outer(name: str) -> bool:
            return name.startswith(("finops.infrastructure", "apps"))

        violations = collect_violations("application", outer)
        assert_no_violations(violations, "Application layer imports infrastructure or API code")

    def test_application_has_no_framework_imports(self):
        violations = collect_violations("application", is_framework_import)
        assert_no_violations(violations, "Application layer imports framework code")


class TestInfrastructureBoundaries:
    def test_infrastructure_does_not_import_api(self):
        violations = collect_violations("infrastructure", lambda name: name == "apps" or name.startswith("apps."))
        assert_no_violations(violations, "Infrastructure layer imports API code")

    def test_shared_is_independent(self):
        def layered(name: str) -> bool:
            return name.startswith(("finops.domain", "finops.application", "finops.infrastructure", "apps"))

        violations = collect_violations("shared", layered)
        assert_no_violations(violations, "Shared utilities import layered code")


def test_layers_exist():
    for layer in ("domain", "application", "infrastructure", "shared"):
        assert (PACKAGE / layer).is_dir(), f"missing finops/{layer}"
