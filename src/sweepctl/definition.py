from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from sweepctl.errors import MissingFieldError

_STRIP_CHARS = "\"'"


class SweepDefinition(BaseModel):
    path: Path = Field(..., description="Sweep definition file the fields were read from.")
    project: str = Field(..., min_length=1, description="W&B project the sweep is created in.")
    name: str = Field(..., min_length=1, description="Stem for Kubernetes resource names.")


def extract_field(text: str, field: str) -> str:
    """Return the value of the first top-level ``<field>:`` line, or ``""``.

    Only the second whitespace-separated token is kept, with quotes removed.
    """
    key = f"{field}:"
    for line in text.splitlines():
        if not line.startswith(key):
            continue
        parts = line.split()
        if len(parts) < 2:
            return ""
        return parts[1].translate(str.maketrans("", "", _STRIP_CHARS))
    return ""


def load_sweep_definition(path: Path) -> SweepDefinition:
    text = path.read_text(encoding="utf-8", errors="replace")
    project = extract_field(text, "project")
    if not project:
        raise MissingFieldError("project", path)
    name = extract_field(text, "name")
    if not name:
        raise MissingFieldError("name", path)
    return SweepDefinition(path=path, project=project, name=name)
