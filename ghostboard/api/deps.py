"""Shared request dependencies."""

from __future__ import annotations

from fastapi import Request

from ..services.cache import SegmentCache
from ..services.sync import SyncOrchestrator


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def get_segment_cache(request: Request) -> SegmentCache:
    return request.app.state.segment_cache


__all__ = ["get_orchestrator", "get_segment_cache"]
