"""Step routes under an execution graph."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from interaction_store.api.deps import get_services
from interaction_store.api.errors import error_response
from interaction_store.bootstrap import Services
from interaction_store.exceptions import StateStoreError
from interaction_store.models import Status, Step

router = APIRouter(
    prefix="/api/v1/interactions/{interaction_id}/workflows/{workflow_id}/executions/{execution_id}",
    tags=["steps"],
)


class StatusUpdate(BaseModel):
    status: Status


@router.get("/steps")
def list_steps(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    services: Services = Depends(get_services),
):
    try:
        steps = services.steps.list(interaction_id, workflow_id, execution_id)
    except StateStoreError as exc:
        return error_response(exc)
    return {"steps": [s.to_wire() for s in steps], "count": len(steps)}


@router.post("/steps")
def create_step(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    body: Step,
    services: Services = Depends(get_services),
):
    try:
        created = services.steps.create(interaction_id, workflow_id, execution_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(created.to_wire(), status_code=201)


@router.post("/reconcile")
def reconcile(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    services: Services = Depends(get_services),
):
    try:
        report = services.steps.reconcile(interaction_id, workflow_id, execution_id)
    except StateStoreError as exc:
        return error_response(exc)
    return {**asdict(report), "consistent": report.consistent}


@router.get("/steps/{step_id}")
def get_step(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    step_id: str,
    services: Services = Depends(get_services),
):
    try:
        step = services.steps.get(interaction_id, workflow_id, execution_id, step_id)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(step.to_wire())


@router.put("/steps/{step_id}")
def update_step(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    step_id: str,
    body: Step,
    services: Services = Depends(get_services),
):
    try:
        step = services.steps.update(interaction_id, workflow_id, execution_id, step_id, body)
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(step.to_wire())


@router.post("/steps/{step_id}/status")
def update_step_status(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    step_id: str,
    body: StatusUpdate,
    services: Services = Depends(get_services),
):
    try:
        step = services.steps.update_status(
            interaction_id, workflow_id, execution_id, step_id, body.status
        )
    except StateStoreError as exc:
        return error_response(exc)
    return JSONResponse(step.to_wire())


@router.delete("/steps/{step_id}")
def delete_step(
    interaction_id: str,
    workflow_id: str,
    execution_id: str,
    step_id: str,
    services: Services = Depends(get_services),
):
    try:
        services.steps.delete(interaction_id, workflow_id, execution_id, step_id)
    except StateStoreError as exc:
        return error_response(exc)
    return Response(status_code=204)
