import logging
import threading
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from integrations.cloud import CloudClient, RemoteSyncError, client_from_env
from models import ParameterReading, READING_FIELDS
from routers.params import list_readings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sync", tags=["Sync"])

# one upload/download at a time per process
_sync_lock = threading.Lock()


def get_cloud_client() -> Optional[CloudClient]:
    return client_from_env()


def _require(client: Optional[CloudClient]) -> CloudClient:
    if client is None:
        raise HTTPException(status_code=503, detail="Remote logbook is not configured (set REEF_REMOTE_URL)")
    return client


def _acquire() -> None:
    if not _sync_lock.acquire(blocking=False):
        raise HTTPException(status_code=409, detail="A sync is already in progress")


@router.post("/upload")
def sync_upload(db: Session = Depends(get_db), client: Optional[CloudClient] = Depends(get_cloud_client)):
    client = _require(client)
    _acquire()
    try:
        rows = []
        for r in list_readings(db):
            data = r.to_dict()
            rows.append({k: data[k] for k in ("date",) + READING_FIELDS})
        result = client.upsert_params(rows)
    except RemoteSyncError as exc:
        logger.warning("Upload failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Upload failed: {exc}")
    finally:
        _sync_lock.release()
    logger.info("Uploaded %d readings (%d new, %d replaced)", len(rows), result["inserted"], result["updated"])
    return {"uploaded": len(rows), **result}


@router.post("/download")
def sync_download(db: Session = Depends(get_db), client: Optional[CloudClient] = Depends(get_cloud_client)):
    client = _require(client)
    _acquire()
    try:
        remote = client.list_params()
        db.query(ParameterReading).delete()
        for r in remote:
            db.add(ParameterReading(**r.model_dump()))
        db.commit()
    except RemoteSyncError as exc:
        db.rollback()
        logger.warning("Download failed: %s", exc)
        raise HTTPException(status_code=502, detail=f"Download failed: {exc}")
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storing remote readings failed")
        raise HTTPException(status_code=502, detail=f"Download failed: could not store remote readings ({exc.__class__.__name__})")
    finally:
        _sync_lock.release()
    logger.info("Replaced local readings with %d remote rows", len(remote))
    return {"downloaded": len(remote)}
