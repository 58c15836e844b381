import io
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from app.api.deps import Reader
from app.errors import ValidationFailure
from app.models.student import Branch, Category
from app.services import reports as report_service

router = APIRouter()


@router.get("/dashboard")
async def dashboard(user: Reader):
    """Overview statistics for the dashboard."""
    return await report_service.dashboard_stats()


@router.get("/parade-stats")
async def parade_stats(
    user: Reader,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
):
    return await report_service.parade_stats(start_date, end_date)


@router.get("/student-stats")
async def student_stats(
    user: Reader,
    category: Optional[Category] = None,
    branch: Optional[Branch] = None,
):
    return await report_service.student_stats(category, branch)


@router.get("/branch")
async def branch_report(
    user: Reader,
    branch: Branch,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    format: str = Query("json", enum=["json", "csv", "xlsx"]),
):
    """Attendance of one branch over [start_date, end_date] (default: last 7 days)."""
    end = end_date or datetime.utcnow()
    start = start_date or end - timedelta(days=7)
    if start > end:
        raise ValidationFailure("start_date must not be after end_date")
    report = await report_service.build_branch_report(branch, start, end)
    if format == "json":
        return report

    df = pd.DataFrame(report_service.branch_report_rows(report))
    filename = f"ncc_attendance_report_{start:%Y-%m-%d}_{end:%Y-%m-%d}"
    if format == "csv":
        stream = io.StringIO()
        df.to_csv(stream, index=False)
        return StreamingResponse(
            iter([stream.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}.csv"},
        )
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
    output.seek(0)
    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"},
    )


@router.get("/daily")
async def daily_report(user: Reader, day: Optional[date] = None):
    """Per parade and branch tallies for parades held on ``day`` (default today)."""
    return await report_service.build_daily_parade_report(day)
