from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from factory_kpi.core.deps import get_current_user
from factory_kpi.db.models import User
from factory_kpi.schemas.dashboard import ChartImportResult
from factory_kpi.services.imports import import_chart

router = APIRouter(prefix="/imports", tags=["Imports"])


# PUBLIC_INTERFACE
@router.post(
    "/chart",
    response_model=ChartImportResult,
    summary="Import chart data",
    description=(
        "Parse a CSV/TSV/XLSX upload. Text encoding and delimiter are detected; the series "
        "uses xColumn/yColumn (default: the first two columns) and is capped at 1000 points."
    ),
)
async def import_chart_file(
    file: UploadFile = File(...),
    x_column: Optional[str] = Form(None, alias="xColumn"),
    y_column: Optional[str] = Form(None, alias="yColumn"),
    user: User = Depends(get_current_user),
) -> ChartImportResult:
    data = await file.read()
    return import_chart(data, file.filename, x_column=x_column, y_column=y_column)
