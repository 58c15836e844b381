"""Attendance summaries for branches, parades and the dashboard."""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from app.config import settings
from app.models.attendance import NOT_MARKED, AttendanceRecord, AttendanceStatus
from app.models.parade import Parade, ParadeStatus, ParadeType
from app.models.student import Branch, Category, Student
from app.services.attendance import ATTENDED_STATUSES, attendance_rate


class StudentStats(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    attendance_rate: float = 0.0

    @property
    def total_marked(self) -> int:
        return self.present + self.absent + self.late + self.excused


class ParadeEntry(BaseModel):
    parade_id: str
    parade_name: str
    parade_date: datetime
    status: str
    remarks: Optional[str] = None


class StudentBreakdown(BaseModel):
    student_id: str
    name: str
    regimental_number: str
    category: str
    rank: str
    attendance: list[ParadeEntry] = Field(default_factory=list)
    stats: StudentStats = Field(default_factory=StudentStats)


class BranchSummary(BaseModel):
    total_students: int
    total_parades: int
    average_attendance: float


class BranchReport(BaseModel):
    branch: str
    period: str
    start: datetime
    end: datetime
    students: list[StudentBreakdown]
    summary: BranchSummary


class ParadeBranchReport(BaseModel):
    parade_id: str
    parade_name: str
    parade_type: str
    parade_date: datetime
    parade_time: str
    location: Optional[str] = None
    instructor: Optional[str] = None
    branch: str
    total_students: int
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0
    not_marked: int = 0
    attendance_rate: float = 0.0
    students: list[dict[str, Any]] = Field(default_factory=list)


def format_period(start: datetime, end: datetime) -> str:
    return f"{start:%a %b %d %Y} to {end:%a %b %d %Y}"


def _status_key(status: AttendanceStatus | str) -> str:
    return AttendanceStatus(status).value.lower()


def assemble_branch_report(
    branch: str,
    start: datetime,
    end: datetime,
    students: list[Student],
    parades: list[Parade],
    records: dict[tuple[str, str], AttendanceRecord],
) -> BranchReport:
    """Build the report from already-loaded documents.

    ``records`` is keyed by ``(parade_id, student_id)``. The branch average is
    the mean of per-student rates, not a pooled ratio.
    """
    breakdowns: list[StudentBreakdown] = []
    total_rate = 0.0
    for student in students:
        sid = str(student.id)
        item = StudentBreakdown(
            student_id=sid,
            name=student.name,
            regimental_number=student.regimental_number,
            category=Category(student.category).value,
            rank=student.rank,
        )
        attended = 0
        for parade in parades:
            pid = str(parade.id)
            record = records.get((pid, sid))
            status = AttendanceStatus(record.status).value if record else NOT_MARKED
            item.attendance.append(
                ParadeEntry(
                    parade_id=pid,
                    parade_name=parade.name,
                    parade_date=parade.date,
                    status=status,
                    remarks=record.remarks if record else None,
                )
            )
            if record:
                key = _status_key(record.status)
                setattr(item.stats, key, getattr(item.stats, key) + 1)
                if AttendanceStatus(record.status) in ATTENDED_STATUSES:
                    attended += 1
        item.stats.attendance_rate = attendance_rate(attended, item.stats.total_marked)
        total_rate += item.stats.attendance_rate
        breakdowns.append(item)

    average = round(total_rate / len(students), 1) if students else 0.0
    return BranchReport(
        branch=branch,
        period=format_period(start, end),
        start=start,
        end=end,
        students=breakdowns,
        summary=BranchSummary(
            total_students=len(students),
            total_parades=len(parades),
            average_attendance=average,
        ),
    )


async def _records_for(parades: list[Parade], students: list[Student]) -> dict[tuple[str, str], AttendanceRecord]:
    if not parades or not students:
        return {}
    records = await AttendanceRecord.find(
        {
            "parade_id": {"$in": [str(p.id) for p in parades]},
            "student_id": {"$in": [str(s.id) for s in students]},
        }
    ).to_list()
    return {(r.parade_id, r.student_id): r for r in records}


async def build_branch_report(branch: Branch | str, start: datetime, end: datetime) -> BranchReport:
    """Per-student attendance for one branch over parades dated within [start, end]."""
    branch = Branch(branch)
    students = await Student.find({"branch": branch.value, "is_active": True}).sort("name").to_list()
    parades = await Parade.find({"date": {"$gte": start, "$lte": end}}).sort("date").to_list()
    records = await _records_for(parades, students)
    return assemble_branch_report(branch.value, start, end, students, parades, records)


def local_today(now: Optional[datetime] = None) -> date:
    """The current calendar day in the unit's timezone."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(ZoneInfo(settings.scheduler_timezone)).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Local midnight to midnight of ``day`` as naive UTC, matching stored dates."""
    start = datetime.combine(day, time.min, tzinfo=ZoneInfo(settings.scheduler_timezone))
    end = start + timedelta(days=1)
    return (
        start.astimezone(timezone.utc).replace(tzinfo=None),
        end.astimezone(timezone.utc).replace(tzinfo=None),
    )


def assemble_parade_branch_report(
    parade: Parade,
    branch: str,
    students: list[Student],
    records: dict[tuple[str, str], AttendanceRecord],
) -> ParadeBranchReport:
    pid = str(parade.id)
    report = ParadeBranchReport(
        parade_id=pid,
        parade_name=parade.name,
        parade_type=ParadeType(parade.type).value,
        parade_date=parade.date,
        parade_time=parade.time,
        location=parade.location,
        instructor=parade.instructor,
        branch=branch,
        total_students=len(students),
    )
    for student in students:
        record = records.get((pid, str(student.id)))
        if record:
            key = _status_key(record.status)
            setattr(report, key, getattr(report, key) + 1)
            status = AttendanceStatus(record.status).value
        else:
            report.not_marked += 1
            status = NOT_MARKED
        report.students.append(
            {
                "name": student.name,
                "regimental_number": student.regimental_number,
                "rank": student.rank,
                "status": status,
                "remarks": record.remarks if record else None,
            }
        )
    report.attendance_rate = attendance_rate(report.present + report.late, report.total_students)
    return report


async def build_daily_parade_report(day: Optional[date] = None) -> list[ParadeBranchReport]:
    """One report per (parade, branch) for parades held on ``day`` in the unit's timezone."""
    day = day or local_today()
    start, end = day_bounds(day)
    parades = await Parade.find({"date": {"$gte": start, "$lt": end}}).sort("date").to_list()
    if not parades:
        return []

    students = await Student.find({"is_active": True}).sort("name").to_list()
    by_branch: dict[str, list[Student]] = {}
    for student in students:
        if student.branch:
            by_branch.setdefault(Branch(student.branch).value, []).append(student)

    reports = []
    for parade in parades:
        records = await _records_for([parade], students)
        for branch in Branch:
            branch_students = by_branch.get(branch.value)
            if branch_students:
                reports.append(assemble_parade_branch_report(parade, branch.value, branch_students, records))
    return reports


async def dashboard_stats() -> dict[str, Any]:
    total_students = await Student.find({"is_active": True}).count()
    total_parades = await Parade.count()
    active_parades = await Parade.find(
        {"status": {"$in": [ParadeStatus.UPCOMING.value, ParadeStatus.ONGOING.value]}}
    ).count()

    students = await Student.find({"is_active": True}).to_list()
    average = sum(s.attendance_rate for s in students) / len(students) if students else 0.0

    branch_stats = await Student.aggregate(
        [
            {"$match": {"is_active": True}},
            {"$group": {"_id": "$branch", "count": {"$sum": 1}, "avg_attendance": {"$avg": "$attendance_rate"}}},
            {"$sort": {"count": -1}},
        ]
    ).to_list()

    recent_parades = await Parade.find_all().sort("-created_at").limit(5).to_list()
    recent_records = await AttendanceRecord.find_all().sort("-marked_at").limit(10).to_list()

    return {
        "total_students": total_students,
        "total_parades": total_parades,
        "active_parades": active_parades,
        "average_attendance": round(average, 1),
        "branch_stats": [
            {
                "branch": b["_id"],
                "count": b["count"],
                "avg_attendance": round(b.get("avg_attendance") or 0.0, 1),
            }
            for b in branch_stats
        ],
        "recent_parades": [
            {"id": str(p.id), "name": p.name, "date": p.date, "status": p.status} for p in recent_parades
        ],
        "recent_attendance": [
            {
                "id": str(r.id),
                "parade_id": r.parade_id,
                "student_id": r.student_id,
                "status": r.status,
                "marked_at": r.marked_at,
            }
            for r in recent_records
        ],
    }


async def parade_stats(start: Optional[datetime] = None, end: Optional[datetime] = None) -> list[dict[str, Any]]:
    query: dict[str, Any] = {}
    if start or end:
        query["date"] = {}
        if start:
            query["date"]["$gte"] = start
        if end:
            query["date"]["$lte"] = end
    parades = await Parade.find(query).sort("-date").to_list()
    total_students = await Student.find({"is_active": True}).count()

    stats = []
    for parade in parades:
        counts = {s.value: 0 for s in AttendanceStatus}
        grouped = await AttendanceRecord.aggregate(
            [
                {"$match": {"parade_id": str(parade.id)}},
                {"$group": {"_id": "$status", "count": {"$sum": 1}}},
            ]
        ).to_list()
        for row in grouped:
            counts[row["_id"]] = row["count"]
        marked = sum(counts.values())
        counts[NOT_MARKED] = max(total_students - marked, 0)
        attended = counts[AttendanceStatus.PRESENT.value] + counts[AttendanceStatus.LATE.value]
        stats.append(
            {
                "parade": {"id": str(parade.id), "name": parade.name, "date": parade.date, "type": parade.type},
                "total_students": total_students,
                "attendance": counts,
                "attendance_percentage": attendance_rate(attended, total_students),
            }
        )
    return stats


async def student_stats(category: Optional[Category] = None, branch: Optional[Branch] = None) -> list[dict[str, Any]]:
    query: dict[str, Any] = {"is_active": True}
    if category:
        query["category"] = category.value
    if branch:
        query["branch"] = branch.value
    students = await Student.find(query).sort("-attendance_rate").to_list()
    records = await AttendanceRecord.find({"student_id": {"$in": [str(s.id) for s in students]}}).to_list()

    counts: dict[str, dict[str, int]] = {str(s.id): {a.value: 0 for a in AttendanceStatus} for s in students}
    for r in records:
        counts[r.student_id][AttendanceStatus(r.status).value] += 1

    return [
        {
            "student": {
                "id": str(s.id),
                "name": s.name,
                "regimental_number": s.regimental_number,
                "category": s.category,
                "branch": s.branch,
                "rank": s.rank,
            },
            "attendance": counts[str(s.id)],
            "total_parades": sum(counts[str(s.id)].values()),
            "attendance_rate": s.attendance_rate,
        }
        for s in students
    ]


def branch_report_rows(report: BranchReport) -> list[dict[str, Any]]:
    """Flatten a branch report for CSV export."""
    rows = []
    for i, student in enumerate(report.students, start=1):
        row: dict[str, Any] = {
            "S.No": i,
            "Name": student.name,
            "Regimental Number": student.regimental_number,
            "Category": student.category,
            "Rank": student.rank,
        }
        for entry in student.attendance:
            row[f"{entry.parade_name} ({entry.parade_date:%b %d})"] = entry.status
        row["Attendance Rate"] = f"{student.stats.attendance_rate:.1f}%"
        rows.append(row)
    return rows
