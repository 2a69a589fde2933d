from __future__ import annotations

import asyncio
from pathlib import Path

from fastapi import APIRouter, File, Header, HTTPException, Query, Request, UploadFile

from leadsplit.application import get_distribution_service
from leadsplit.core.settings import Settings
from leadsplit.core.uploads import save_upload
from leadsplit.extractors import contact_sheet

router = APIRouter(prefix="/distributions", tags=["upload"])

PREVIEW_ROWS = 5

# one upload pass at a time; agents are snapshotted per pass
_upload_lock = asyncio.Lock()


async def _store_and_parse(request: Request, upload: UploadFile) -> tuple[str, contact_sheet.ContactSheetResult, int]:
    if not upload.filename:
        raise HTTPException(status_code=400, detail="Uploaded file must have a filename")
    settings: Settings = request.app.state.settings
    safe_name = Path(upload.filename).name
    try:
        path = save_upload(settings.upload_dir, safe_name, upload.file, max_bytes=settings.max_upload_bytes)
    finally:
        await upload.close()
    try:
        size = path.stat().st_size
        result = await asyncio.to_thread(contact_sheet.parse, path)
    finally:
        path.unlink(missing_ok=True)
    return safe_name, result, size


@router.post("/upload")
async def upload_contacts(
    request: Request,
    file: UploadFile = File(...),
    agent_count: int | None = Query(default=None),
    x_user_id: str = Header(default="anonymous"),
) -> dict:
    """Parse an uploaded contact sheet and distribute it across active agents."""
    filename, parsed, _ = await _store_and_parse(request, file)
    service = get_distribution_service()

    async with _upload_lock:
        distribution = service.open_distribution(
            filename=filename,
            original_name=file.filename,
            total_items=parsed.total_rows,
            uploaded_by=x_user_id,
        )
        result = await asyncio.to_thread(service.create_distribution, parsed.records, distribution, agent_count)

    summary = result["summary"]
    return {
        "distribution_id": result["distribution_id"],
        "filename": filename,
        "total_items": parsed.total_rows,
        "summary": {
            "total_agents": summary["total_agents"],
            "items_per_agent": summary["items_per_agent"],
            "remainder_items": summary["remainder_items"],
            "tasks_created": result["tasks_created"],
            "agent_distribution": summary["agent_distribution"],
        },
    }


@router.post("/validate")
async def validate_contacts(request: Request, file: UploadFile = File(...)) -> dict:
    filename, parsed, size = await _store_and_parse(request, file)
    preview_rows = parsed.records[:PREVIEW_ROWS]
    return {
        "filename": filename,
        "total_rows": parsed.total_rows,
        "preview": preview_rows,
        "columns": list(preview_rows[0].keys()) if preview_rows else [],
        "file_info": {"size": size, "type": file.content_type},
    }


@router.post("/preview")
async def preview_contacts(
    request: Request,
    file: UploadFile = File(...),
    agent_count: int | None = Query(default=None),
) -> dict:
    filename, parsed, _ = await _store_and_parse(request, file)
    service = get_distribution_service()
    preview = service.preview(parsed.records, agent_count)
    return {"filename": filename, "preview": preview}
