from __future__ import annotations

from sweepctl.cli import app

if __name__ == "__main__":
    app()
