"""
Upload handling for spreadsheet imports.

Parsing lives in tabular_import; this module enforces upload limits, turns parse
errors into 400 responses and shapes the API models.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import HTTPException, status

from factory_kpi.core.settings import get_app_settings
from factory_kpi.schemas.auth import UserImportPreview, UserImportRow
from factory_kpi.schemas.dashboard import ChartImportResult, ChartPoint, ChartStatistics
from factory_kpi.services.tabular_import import (
    TabularImportError,
    build_series,
    map_user_rows,
    parse_chart_upload,
    parse_user_upload,
    suggest_user_mapping,
)

logger = logging.getLogger(__name__)


def _check_size(data: bytes, limit: int) -> None:
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if len(data) > limit:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File is too large (max {limit // (1024 * 1024)} MB)",
        )


# PUBLIC_INTERFACE
def import_chart(
    data: bytes,
    file_name: Optional[str] = None,
    x_column: Optional[str] = None,
    y_column: Optional[str] = None,
) -> ChartImportResult:
    """Parse a CSV/TSV/XLSX upload and build a chart series from two of its columns."""
    _check_size(data, get_app_settings().MAX_CHART_IMPORT_BYTES)
    try:
        table = parse_chart_upload(data, file_name)
        series = build_series(table, x_column or None, y_column or None)
    except TabularImportError as exc:
        logger.info("Chart import rejected for %s: %s", file_name, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return ChartImportResult(
        file_name=file_name,
        encoding=table.encoding,
        delimiter=table.delimiter,
        columns=table.columns,
        rows=table.rows,
        x_column=series.x_column,
        y_column=series.y_column,
        series=[ChartPoint(**p) for p in series.points],
        statistics=ChartStatistics(**series.statistics),
    )


# PUBLIC_INTERFACE
def preview_user_import(
    data: bytes,
    file_name: Optional[str] = None,
    generate_passwords: bool = False,
) -> UserImportPreview:
    """Parse a user sheet and suggest a header mapping; nothing is stored."""
    settings = get_app_settings()
    _check_size(data, settings.MAX_USER_IMPORT_BYTES)
    try:
        table = parse_user_upload(data, file_name)
    except TabularImportError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    mapping = suggest_user_mapping(table.columns)
    users = map_user_rows(
        table.rows,
        mapping,
        generate_passwords=generate_passwords,
        default_department=settings.IMPORT_DEFAULT_DEPARTMENT,
    )
    return UserImportPreview(
        headers=table.columns,
        rows=table.rows,
        mapping=mapping,
        users=[UserImportRow(**u) for u in users],
        total_rows=len(table.rows),
    )
