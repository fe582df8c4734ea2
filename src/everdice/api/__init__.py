"""HTTP API exposing Everdice records and gameplay endpoints."""

from __future__ import annotations

from everdice.api.app import create_app


__all__ = ["create_app"]
