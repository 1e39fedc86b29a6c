from fastapi import APIRouter, Depends

from app.dependencies import get_record_service
from app.services.records import RecordService

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check(records: RecordService = Depends(get_record_service)):
    return {
        "status": "healthy",
        "remote_storage": "configured" if records.remote_configured else "device_only",
    }
