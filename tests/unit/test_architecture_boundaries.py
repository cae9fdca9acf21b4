import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


def _imports(package_dir: Path):
    for py_file in package_dir.rglob("*.py"):
        source = py_file.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(py_file))
        rel_path = py_file.relative_to(REPO_ROOT)

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    yield rel_path, node.lineno, alias.name
            elif isinstance(node, ast.ImportFrom):
                yield rel_path, node.lineno, node.module or ""


def _violations(package: str, forbidden: tuple):
    found = []
    for rel_path, lineno, name in _imports(REPO_ROOT / "abwalk" / package):
        for prefix in forbidden:
            if name == prefix or name.startswith(prefix + "."):
                found.append(f"{rel_path}:{lineno} imports {name}")
    return found


def test_pipeline_layer_does_not_import_ui_layer():
    """Pipeline layer must not import from UI layer directly."""
    violations = _violations("pipeline", ("abwalk.ui", "rich", "typer"))
    assert not violations, "Pipeline layer must not import UI layer:\n" + "\n".join(violations)


def test_domain_layer_has_no_outward_imports():
    violations = _violations("domain", ("abwalk.ui", "abwalk.pipeline", "abwalk.infrastructure", "abwalk.config"))
    assert not violations, "Domain layer must stay self-contained:\n" + "\n".join(violations)
