import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from watchlog.database import get_db
from watchlog.errors import PersistenceError, ValidationError
from watchlog.schemas.snapshot import ImportResponse, SnapshotDocument
from watchlog.services.snapshot import SnapshotService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["snapshot"])


def _download_name() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"watchlog-export-{stamp}.json"


@router.get("/export", response_model=SnapshotDocument)
async def export_snapshot(response: Response, db: AsyncSession = Depends(get_db)):
    response.headers["Content-Disposition"] = f'attachment; filename="{_download_name()}"'
    return await SnapshotService(db).export_all()


@router.post("/import", response_model=ImportResponse)
async def import_snapshot(request: Request, db: AsyncSession = Depends(get_db)):
    """Replace every user and movie with the uploaded export."""
    try:
        document = await request.json()
    except ValueError:
        raise HTTPException(400, "Body must be a JSON document")
    try:
        summary = await SnapshotService(db).import_all(document)
    except ValidationError as e:
        raise HTTPException(400, str(e))
    except PersistenceError as e:
        raise HTTPException(500, str(e))
    return ImportResponse(**summary.model_dump())
