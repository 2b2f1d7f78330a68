from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_project_metadata():
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]
    assert project["name"] == "speakerkit"
    assert project.get("readme") != "DESIGN.md"
    assert {"pydantic", "pydantic-settings", "httpx"} <= {
        dep.split(">")[0].split("=")[0].strip() for dep in project["dependencies"]
    }
