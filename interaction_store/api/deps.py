"""Request-scoped access to the service graph held on the app."""

from __future__ import annotations

from fastapi import Request

from interaction_store.bootstrap import Services


def get_services(request: Request) -> Services:
    return request.app.state.services
