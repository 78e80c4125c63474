from __future__ import annotations

import io
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

import pandas as pd
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from factory_kpi.core.deps import get_current_user, get_storage
from factory_kpi.db.base import utcnow
from factory_kpi.db.models import User
from factory_kpi.repositories.storage import Storage
from factory_kpi.services.claims import ClaimService
from factory_kpi.services.kpi import ActionService, KpiService

router = APIRouter(prefix="/reports", tags=["Reports"])

ExportFormat = Literal["csv", "xlsx", "pdf"]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _attachment(filename: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


def _pdf_bytes(df: pd.DataFrame, title: str) -> bytes:
    """Render the frame as a landscape table."""
    from reportlab.lib import colors
    from reportlab.lib.pagesizes import A4, landscape
    from reportlab.lib.styles import getSampleStyleSheet
    from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=landscape(A4), leftMargin=18, rightMargin=18, topMargin=18, bottomMargin=18
    )
    styles = getSampleStyleSheet()
    heading = Paragraph(f"{title} ({utcnow().strftime('%Y-%m-%d %H:%M UTC')})", styles["Title"])
    table = Table([list(df.columns)] + df.fillna("").astype(str).values.tolist(), repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 7),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
            ]
        )
    )
    doc.build([heading, table])
    return buffer.getvalue()


def _export_dataframe(df: pd.DataFrame, filename_base: str, export_format: str, title: str) -> StreamingResponse:
    """
    Stream a DataFrame as CSV, Excel or PDF.

    CSV is written with a UTF-8 BOM so Excel shows Turkish characters correctly.
    """
    if export_format == "xlsx":
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Report")
        buffer.seek(0)
        return StreamingResponse(buffer, media_type=XLSX_MEDIA_TYPE, headers=_attachment(f"{filename_base}.xlsx"))

    if export_format == "pdf":
        return StreamingResponse(
            io.BytesIO(_pdf_bytes(df, title)),
            media_type="application/pdf",
            headers=_attachment(f"{filename_base}.pdf"),
        )

    content = df.to_csv(index=False).encode("utf-8-sig")
    return StreamingResponse(
        io.BytesIO(content), media_type="text/csv; charset=utf-8", headers=_attachment(f"{filename_base}.csv")
    )


def _frame(rows: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=columns)


def _day(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


# PUBLIC_INTERFACE
@router.get(
    "/claims",
    summary="Customer claims report",
    description="All claims (optionally one status) with cost and resolution dates.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def claims_report(
    status: Optional[str] = Query(None, description="Only claims in this status"),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    claims = await ClaimService(storage).list_claims(status)
    rows = [
        {
            "Claim No": c.customer_claim_no,
            "Customer": c.customer_name,
            "Defect Type": c.defect_type,
            "Claim Date": _day(c.claim_date),
            "Type": c.claim_type,
            "Priority": c.priority,
            "Status": c.status,
            "NOK Qty": c.nok_quantity,
            "Cost": c.cost_amount,
            "Currency": c.currency,
            "Resolution Date": _day(c.resolution_date),
        }
        for c in claims
    ]
    columns = [
        "Claim No", "Customer", "Defect Type", "Claim Date", "Type", "Priority",
        "Status", "NOK Qty", "Cost", "Currency", "Resolution Date",
    ]
    return _export_dataframe(_frame(rows, columns), "customer_claims", format, "Customer Claims")


# PUBLIC_INTERFACE
@router.get(
    "/kpi",
    summary="KPI report",
    description="Recorded KPI values, newest first.",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def kpi_report(
    department: Optional[str] = Query(None),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    kpis = await KpiService(storage).list_kpi(department=department)
    rows = [
        {
            "Department": k.department,
            "Year": k.year,
            "Month": k.month,
            "Value": k.value,
            "Target": k.target,
            "Percentage": k.percentage,
            "Recorded At": k.created_at.strftime("%Y-%m-%d %H:%M"),
        }
        for k in kpis
    ]
    columns = ["Department", "Year", "Month", "Value", "Target", "Percentage", "Recorded At"]
    return _export_dataframe(_frame(rows, columns), "kpi_values", format, "KPI Values")


# PUBLIC_INTERFACE
@router.get(
    "/actions",
    summary="Action items report",
    response_description="File stream (CSV/XLSX/PDF)",
)
async def actions_report(
    department: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    format: ExportFormat = Query("csv", description="Export format: csv | xlsx | pdf"),
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    actions = await ActionService(storage).list_actions(department, status)
    rows = [
        {
            "Title": a.title,
            "Department": a.department,
            "Priority": a.priority,
            "Status": a.status,
            "Assignee": a.assignee_name or "",
            "Created By": a.created_by_name or "",
            "Due Date": _day(a.due_date),
        }
        for a in actions
    ]
    columns = ["Title", "Department", "Priority", "Status", "Assignee", "Created By", "Due Date"]
    return _export_dataframe(_frame(rows, columns), "action_items", format, "Action Items")
