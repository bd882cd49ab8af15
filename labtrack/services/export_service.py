import io
from sqlalchemy.orm import Session
from sqlalchemy import select
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from labtrack.models.history import ActivityLog, ItemHistory
from labtrack.models.user import User


def _write_header(ws, headers: list[str]) -> None:
    header_fill = PatternFill(start_color="1C2D42", end_color="1C2D42", fill_type="solid")
    header_font = Font(bold=True, color="F5A623", size=11)
    for col, h in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col, value=h)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")
    ws.row_dimensions[1].height = 22
    ws.freeze_panes = "A2"


def export_activity_excel(db: Session, item_serial: str = "") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Activity log"
    _write_header(ws, ["ID", "Čas", "Uživatel", "Akce", "Položka", "Workflow", "Požadavek", "Detail"])

    usernames = dict(db.execute(select(User.id, User.username)).all())
    query = select(ActivityLog).order_by(ActivityLog.created_at, ActivityLog.id)
    if item_serial:
        query = query.where(ActivityLog.item_serial == item_serial)
    for row_num, entry in enumerate(db.scalars(query).all(), 2):
        ws.cell(row=row_num, column=1, value=entry.id)
        ws.cell(row=row_num, column=2, value=entry.created_at.strftime("%d.%m.%Y %H:%M"))
        ws.cell(row=row_num, column=3, value=usernames.get(entry.user_id, "systém"))
        ws.cell(row=row_num, column=4, value=entry.action)
        ws.cell(row=row_num, column=5, value=entry.item_serial or "")
        ws.cell(row=row_num, column=6, value=entry.related_kind or "")
        ws.cell(row=row_num, column=7, value=entry.related_id or "")
        ws.cell(row=row_num, column=8, value=entry.details or "")

    for i, w in enumerate([8, 18, 18, 24, 18, 14, 38, 60], 1):
        ws.column_dimensions[get_column_letter(i)].width = w

    # Intervaly držení položek
    ws2 = wb.create_sheet("Historie položek")
    _write_header(ws2, ["Položka", "Akce", "Workflow", "Požadavek", "Od", "Do", "Poznámka"])
    history_query = select(ItemHistory).order_by(ItemHistory.item_serial, ItemHistory.start_date)
    if item_serial:
        history_query = history_query.where(ItemHistory.item_serial == item_serial)
    for row_num, h in enumerate(db.scalars(history_query).all(), 2):
        ws2.cell(row=row_num, column=1, value=h.item_serial)
        ws2.cell(row=row_num, column=2, value=h.action.value)
        ws2.cell(row=row_num, column=3, value=h.related_kind.value)
        ws2.cell(row=row_num, column=4, value=h.related_id)
        ws2.cell(row=row_num, column=5, value=h.start_date.strftime("%d.%m.%Y %H:%M"))
        ws2.cell(row=row_num, column=6, value=h.end_date.strftime("%d.%m.%Y %H:%M") if h.end_date else "otevřeno")
        ws2.cell(row=row_num, column=7, value=h.details or "")

    for i, w in enumerate([18, 14, 14, 38, 18, 18, 40], 1):
        ws2.column_dimensions[get_column_letter(i)].width = w

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
