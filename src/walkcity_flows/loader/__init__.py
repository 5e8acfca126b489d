"""Resilient async loading with bounded retry and stale-result suppression."""

from __future__ import annotations

from walkcity_flows.loader.resilient import LoadAttempt, LoadOperation, ResilientLoader

__all__ = ["LoadAttempt", "LoadOperation", "ResilientLoader"]
