"""Acesso ao pipeline compartilhado a partir do request."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from app.bootstrap.container import PipelineContainer


def get_pipeline(request: Request) -> PipelineContainer:
    """Retorna o container do lifespan (ou o singleton de ambiente)."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        from app.bootstrap import get_container

        container = get_container()
    return container
