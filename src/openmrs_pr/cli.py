"""Console script entrypoint; see `openmrs_pr.orchestrator.main`."""

from __future__ import annotations

from openmrs_pr.orchestrator.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
