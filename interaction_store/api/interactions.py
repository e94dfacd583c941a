"""Interaction routes, including nested plan / workflow / graph replacement."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from interaction_store.api.deps import get_services
from interaction_store.api.errors import error_response
from interaction_store.bootstrap import Services
from interaction_store.exceptions import StateStoreError
from interaction_store.models import ExecutionGraph, Interaction, Plan, Workflow
from interaction_store.services import ReplaceOutcome

router = APIRouter(prefix="/api/v1/interactions", tags=["interactions"])


def _outcome_response(outcome: ReplaceOutcome, kind: str, addressed: str) -> JSONResponse:
    if not outcome.replaced:
        return JSONResponse(
            {
                "error": f"{kind} {addressed!r} is not the one stored on interaction",
                "type": "ReplaceSkipped",
                "interaction": outcome.interaction.to_wire(),
            },
            status_code=409,
        )
    return JSONResponse(outcome.interaction.to_wire())


@router.post("")
def create_interaction(body: Interaction, services: Services = Depends(get_services)):
    try:
        created = services.interactions.create(body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(created.to_wire(), status_code=201)


@router.get("/{interaction_id}")
def get_interaction(interaction_id: str, services: Services = Depends(get_services)):
    try:
        return JSONResponse(services.interactions.get(interaction_id).to_wire())
    except StateStoreError as exc:
        return error_response(exc)


@router.put("/{interaction_id}")
def replace_interaction(
    interaction_id: str, body: Interaction, services: Services = Depends(get_services)
):
    try:
        return JSONResponse(services.interactions.replace(interaction_id, body).to_wire())
    except StateStoreError as exc:
        return error_response(exc)


@router.delete("/{interaction_id}")
def delete_interaction(interaction_id: str, services: Services = Depends(get_services)):
    try:
        services.interactions.delete(interaction_id)
    except StateStoreError as exc:
        return error_response(exc)
    return Response(status_code=204)


@router.put("/{interaction_id}/plans/{plan_id}")
def replace_plan(
    interaction_id: str,
    plan_id: str,
    body: Plan,
    services: Services = Depends(get_services),
):
    try:
        outcome = services.interactions.replace_plan(interaction_id, plan_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return _outcome_response(outcome, "plan", plan_id)


@router.put("/{interaction_id}/workflows/{workflow_id}")
def replace_workflow(
    interaction_id: str,
    workflow_id: str,
    body: Workflow,
    services: Services = Depends(get_services),
):
    try:
        outcome = services.interactions.replace_workflow(interaction_id, workflow_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return _outcome_response(outcome, "workflow", workflow_id)


@router.put("/{interaction_id}/workflows/{workflow_id}/executions/{execution_id}")
def replace_execution_graph(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    body: ExecutionGraph,
    services: Services = Depends(get_services),
):
    try:
        outcome = services.interactions.replace_execution_graph(
            interaction_id, workflow_id, execution_id, body
        )
    except StateStoreError as exc:
        return error_response(exc)
    return _outcome_response(outcome, "execution graph", execution_id)
