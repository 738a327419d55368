"""Ingestion entry points that populate the rates database from NBP."""

from __future__ import annotations

from fx_nbp.seeds.populate_nbp_rates import RateIngestor

__all__ = ["RateIngestor"]
