from datetime import datetime

import pytest

from app.errors import NotFound, ValidationFailure
from app.models import AttendanceBatchEntry, AttendanceRecord, AttendanceStatus, Student
from app.services import attendance as svc
from app.services.students import archive_student, list_students

MARKER = "65f0000000000000000000aa"


def test_rate_counts_present_and_late():
    assert svc.rate_from_statuses(["Present", "Present", "Absent", "Late"]) == 75.0
    assert svc.rate_from_statuses([AttendanceStatus.EXCUSED]) == 0.0
    assert svc.rate_from_statuses([]) == 0.0
    assert svc.attendance_rate(1, 3) == 33.3


def test_parse_status_lists_allowed_values():
    with pytest.raises(ValidationFailure, match="Present, Absent, Late, Excused"):
        svc.parse_status("Sick")


async def test_marking_twice_updates_the_same_record(make_student, make_parade):
    student = await make_student()
    parade = await make_parade()

    record, created = await svc.mark_attendance(str(parade.id), str(student.id), "Present", None, MARKER)
    again, created_again = await svc.mark_attendance(str(parade.id), str(student.id), "Absent", "sick", MARKER)

    assert created and not created_again
    assert again.id == record.id
    assert await AttendanceRecord.find({"student_id": str(student.id)}).count() == 1
    stored = await AttendanceRecord.get(record.id)
    assert stored.status == AttendanceStatus.ABSENT
    assert stored.remarks == "sick"


async def test_rate_after_present_present_absent_late(make_student, make_parade):
    student = await make_student()
    for status in ("Present", "Present", "Absent", "Late"):
        parade = await make_parade()
        await svc.mark_attendance(str(parade.id), str(student.id), status, None, MARKER)

    refreshed = await Student.get(student.id)
    assert refreshed.attendance_rate == 75.0


async def test_recompute_without_records_is_zero(make_student):
    student = await make_student(attendance_rate=80.0)

    assert await svc.recompute_attendance_rate(str(student.id)) == 0.0
    assert (await Student.get(student.id)).attendance_rate == 0.0


async def test_mark_rejects_unknown_parade_and_student(make_student, make_parade):
    student = await make_student()
    parade = await make_parade()

    with pytest.raises(NotFound):
        await svc.mark_attendance("not-an-id", str(student.id), "Present", None, MARKER)
    with pytest.raises(NotFound):
        await svc.mark_attendance(str(parade.id), "65f0000000000000000000ff", "Present", None, MARKER)
    assert await AttendanceRecord.count() == 0


async def test_batch_isolates_failing_entries(make_student, make_parade):
    first = await make_student()
    second = await make_student()
    parade = await make_parade()
    await svc.mark_attendance(str(parade.id), str(second.id), "Absent", None, MARKER)

    result = await svc.mark_batch(
        str(parade.id),
        [
            AttendanceBatchEntry(student_id=str(first.id), status="Present"),
            AttendanceBatchEntry(student_id=str(second.id), status="Late"),
            AttendanceBatchEntry(student_id="missing", status="Present"),
            AttendanceBatchEntry(student_id=str(first.id), status="Sick"),
        ],
        marked_by=MARKER,
    )

    assert result.created == 1
    assert result.updated == 1
    assert len(result.errors) == 2
    assert any("missing" in e for e in result.errors)
    assert (await Student.get(first.id)).attendance_rate == 100.0
    assert (await Student.get(second.id)).attendance_rate == 100.0


async def test_batch_for_unknown_parade_aborts(make_student):
    student = await make_student()

    with pytest.raises(NotFound):
        await svc.mark_batch(
            "65f0000000000000000000ff",
            [AttendanceBatchEntry(student_id=str(student.id), status="Present")],
            marked_by=MARKER,
        )


async def test_update_attendance_recomputes_rate(make_student, make_parade):
    student = await make_student()
    parade = await make_parade()
    record, _ = await svc.mark_attendance(str(parade.id), str(student.id), "Absent", None, MARKER)
    assert (await Student.get(student.id)).attendance_rate == 0.0

    updated = await svc.update_attendance(str(record.id), "Late", "bus delay", MARKER)

    assert updated.status == AttendanceStatus.LATE
    assert (await Student.get(student.id)).attendance_rate == 100.0


async def test_unmark_deletes_and_recomputes(make_student, make_parade):
    student = await make_student()
    drill = await make_parade()
    pt = await make_parade()
    await svc.mark_attendance(str(drill.id), str(student.id), "Present", None, MARKER)
    absent, _ = await svc.mark_attendance(str(pt.id), str(student.id), "Absent", None, MARKER)
    assert (await Student.get(student.id)).attendance_rate == 50.0

    await svc.unmark(str(absent.id))

    assert await AttendanceRecord.get(absent.id) is None
    assert (await Student.get(student.id)).attendance_rate == 100.0
    with pytest.raises(NotFound):
        await svc.unmark(str(absent.id))


async def test_archived_student_keeps_history(make_student, make_parade):
    student = await make_student()
    parade = await make_parade(name="Republic Day Rehearsal", date=datetime(2024, 1, 20, 7, 0))
    await svc.mark_attendance(str(parade.id), str(student.id), "Present", None, MARKER)

    await archive_student(str(student.id))

    assert str(student.id) not in [str(s.id) for s in await list_students()]
    history = await svc.records_for_student(str(student.id))
    assert len(history) == 1
    assert history[0]["parade"]["name"] == "Republic Day Rehearsal"


async def test_records_for_parade_sorted_by_name(make_student, make_parade):
    parade = await make_parade()
    zed = await make_student(name="Zed")
    amy = await make_student(name="Amy")
    for student in (zed, amy):
        await svc.mark_attendance(str(parade.id), str(student.id), "Present", None, MARKER)

    rows = await svc.records_for_parade(str(parade.id))

    assert [r["student"]["name"] for r in rows] == ["Amy", "Zed"]


async def test_batch_repeated_student_last_entry_wins(make_student, make_parade):
    student = await make_student()
    parade = await make_parade()

    result = await svc.mark_batch(
        str(parade.id),
        [
            AttendanceBatchEntry(student_id=str(student.id), status="Present"),
            AttendanceBatchEntry(student_id=str(student.id), status="Absent", remarks="left early"),
        ],
        marked_by=MARKER,
    )

    assert (result.created, result.updated, result.errors) == (1, 1, [])
    records = await AttendanceRecord.find({"parade_id": str(parade.id)}).to_list()
    assert [(r.status, r.remarks) for r in records] == [(AttendanceStatus.ABSENT, "left early")]
    assert (await Student.get(student.id)).attendance_rate == 0.0


async def test_update_for_removed_student_still_saves(make_student, make_parade):
    student = await make_student()
    parade = await make_parade()
    record, _ = await svc.mark_attendance(str(parade.id), str(student.id), "Absent", None, MARKER)
    await student.delete()

    updated = await svc.update_attendance(str(record.id), "Excused", "medical", MARKER)

    assert updated.status == AttendanceStatus.EXCUSED
    stored = await AttendanceRecord.get(record.id)
    assert stored.status == AttendanceStatus.EXCUSED
    assert stored.remarks == "medical"
