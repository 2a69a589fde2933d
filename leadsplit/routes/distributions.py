from __future__ import annotations

from fastapi import APIRouter, Header

from leadsplit.application import get_distribution_service

router = APIRouter(prefix="/distributions", tags=["distributions"])


@router.get("")
async def list_distributions(x_user_id: str | None = Header(default=None)) -> dict:
    service = get_distribution_service()
    return {"items": service.list_distributions(x_user_id)}


@router.get("/{distribution_id}")
async def get_distribution_details(distribution_id: str) -> dict:
    service = get_distribution_service()
    return service.get_distribution_details(distribution_id)


@router.get("/{distribution_id}/summary")
async def get_distribution_summary(distribution_id: str) -> dict:
    service = get_distribution_service()
    return service.get_distribution_summary(distribution_id)
