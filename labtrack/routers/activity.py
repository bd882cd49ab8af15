from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from labtrack.database import get_db
from labtrack.routers.auth import require_manager
from labtrack.schemas.notifications import ActivityResponse
from labtrack.schemas.pagination import Page
from labtrack.services import history_service
import labtrack.services.export_service as export_svc

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("", response_model=Page[ActivityResponse])
def list_activity(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    action: str = Query(""),
    item_serial: str = Query(""),
    db: Session = Depends(get_db),
    _=Depends(require_manager),
):
    return history_service.get_activity(db, page=page, size=size, action=action, item_serial=item_serial)


@router.get("/export/excel")
def export_excel(item_serial: str = Query(""), db: Session = Depends(get_db), _=Depends(require_manager)):
    xlsx_bytes = export_svc.export_activity_excel(db, item_serial=item_serial)
    return Response(
        content=xlsx_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=activity-log.xlsx"},
    )
