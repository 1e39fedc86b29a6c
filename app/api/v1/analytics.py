from fastapi import APIRouter, Depends, Query

from app.analytics import db as analytics_db
from app.core.security import require_api_key

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.get("/analytics/summary")
def summary():
    return analytics_db.get_summary()


@router.get("/analytics/latest")
def latest(limit: int = Query(default=20, ge=1, le=200)):
    return analytics_db.get_latest(limit=limit)


@router.post("/analytics/purge")
def purge():
    return analytics_db.purge_old_records()
