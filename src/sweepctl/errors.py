from __future__ import annotations

from pathlib import Path


class PreconditionError(RuntimeError):
    """A fatal, operator-correctable problem detected before or during a run."""


class MissingToolError(PreconditionError):
    def __init__(self, tool: str):
        super().__init__(f"{tool} is not installed. Exiting.")
        self.tool = tool


class MissingFileError(PreconditionError):
    def __init__(self, path: Path, *, what: str = ""):
        if what:
            msg = f"{what} {path} not found! Exiting."
        else:
            msg = f"{path} not found! Exiting."
        super().__init__(msg)
        self.path = path


class MissingFieldError(PreconditionError):
    def __init__(self, field: str, path: Path):
        super().__init__(f"Could not extract '{field}' field from {path}. Exiting.")
        self.field = field
        self.path = path


class SweepIdNotFoundError(PreconditionError):
    def __init__(self, raw_output: str):
        super().__init__("Could not extract sweep ID. Check output for errors. Exiting.")
        self.raw_output = raw_output
