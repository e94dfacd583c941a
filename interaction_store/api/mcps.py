"""MCP routes under an Interaction's workflow."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from interaction_store.api.deps import get_services
from interaction_store.api.errors import error_response
from interaction_store.bootstrap import Services
from interaction_store.exceptions import StateStoreError
from interaction_store.models import MCP, Tool

router = APIRouter(
    prefix="/api/v1/interactions/{interaction_id}/workflows/{workflow_id}/mcps",
    tags=["mcps"],
)


@router.post("")
def create_mcp(
    interaction_id: str,
    workflow_id: str,
    body: MCP,
    services: Services = Depends(get_services),
):
    try:
        created = services.mcps.create(interaction_id, workflow_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(created.to_wire(), status_code=201)


@router.get("/{mcp_id}")
def get_mcp(
    interaction_id: str,
    workflow_id: str,
    mcp_id: str,
    services: Services = Depends(get_services),
):
    try:
        return JSONResponse(services.mcps.get(interaction_id, workflow_id, mcp_id).to_wire())
    except StateStoreError as exc:
        return error_response(exc)


@router.put("/{mcp_id}")
def update_mcp(
    interaction_id: str,
    workflow_id: str,
    mcp_id: str,
    body: MCP,
    services: Services = Depends(get_services),
):
    try:
        updated = services.mcps.update(interaction_id, workflow_id, mcp_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(updated.to_wire())


@router.post("/{mcp_id}/tools")
def add_tool(
    interaction_id: str,
    workflow_id: str,
    mcp_id: str,
    body: Tool,
    services: Services = Depends(get_services),
):
    try:
        updated = services.mcps.add_tool(interaction_id, workflow_id, mcp_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(updated.to_wire())


@router.delete("/{mcp_id}")
def delete_mcp(
    interaction_id: str,
    workflow_id: str,
    mcp_id: str,
    services: Services = Depends(get_services),
):
    try:
        services.mcps.delete(interaction_id, workflow_id, mcp_id)
    except StateStoreError as exc:
        return error_response(exc)
    return Response(status_code=204)
