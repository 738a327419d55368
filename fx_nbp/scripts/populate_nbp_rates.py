"""CLI entry point for ingesting NBP exchange rates."""

from __future__ import annotations

from fx_nbp.seeds.populate_nbp_rates import main

if __name__ == "__main__":  # pragma: no cover - thin wrapper
    raise SystemExit(main())
