from __future__ import annotations

from fastapi import APIRouter, Query

from leadsplit.application import get_agent_service
from leadsplit.core.schema import AgentActiveUpdate, TaskStatusUpdate

router = APIRouter(prefix="/agents", tags=["agents"])
tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("")
async def register_agent(payload: dict) -> dict:
    service = get_agent_service()
    agent = service.register_agent(payload)
    return agent.to_dict()


@router.get("")
async def list_agents(
    active: bool | None = Query(default=None),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort_by: str = Query(default="created_at"),
    sort_order: str = Query(default="asc"),
) -> dict:
    service = get_agent_service()
    return service.list_agents_page(active=active, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)


@router.get("/{agent_id}")
async def get_agent(agent_id: str) -> dict:
    service = get_agent_service()
    return service.get_agent(agent_id).to_dict()


@router.put("/{agent_id}")
async def update_agent(agent_id: str, payload: dict) -> dict:
    service = get_agent_service()
    return service.update_agent(agent_id, payload).to_dict()


@router.patch("/{agent_id}")
async def set_agent_active(agent_id: str, payload: AgentActiveUpdate) -> dict:
    service = get_agent_service()
    return service.set_agent_active(agent_id, payload.is_active).to_dict()


@router.delete("/{agent_id}")
async def delete_agent(agent_id: str) -> dict:
    service = get_agent_service()
    agent = service.deactivate_agent(agent_id)
    return {"success": True, "message": "Agent deactivated", "agent": agent.to_dict()}


@router.get("/{agent_id}/tasks")
async def list_agent_tasks(agent_id: str, status: str | None = Query(default=None)) -> dict:
    service = get_agent_service()
    return service.list_agent_tasks(agent_id, status)


@tasks_router.patch("/{task_id}")
async def update_task_status(task_id: str, payload: TaskStatusUpdate) -> dict:
    service = get_agent_service()
    return service.update_task_status(task_id, payload.status)
