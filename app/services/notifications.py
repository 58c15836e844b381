"""Email delivery of branch and daily parade reports."""
from __future__ import annotations

import asyncio
import json
import logging
import re
import smtplib
from datetime import date, datetime, timedelta
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any, Optional

from app.config import settings
from app.models.student import Branch
from app.services.reports import (
    BranchReport,
    ParadeBranchReport,
    build_branch_report,
    build_daily_parade_report,
    local_today,
)

logger = logging.getLogger(__name__)

WEEKLY_REPORT_DAYS = 7


def department_email(branch: Branch | str) -> str:
    addresses = {
        Branch.CSE: settings.cse_dept_email,
        Branch.AIML: settings.aiml_dept_email,
        Branch.CSDS: settings.csds_dept_email,
        Branch.ECE: settings.ece_dept_email,
        Branch.IT: settings.it_dept_email,
        Branch.EEE: settings.eee_dept_email,
        Branch.ME: settings.me_dept_email,
        Branch.CE: settings.ce_dept_email,
    }
    try:
        return addresses.get(Branch(branch)) or settings.fallback_dept_email
    except ValueError:
        return settings.fallback_dept_email


def _smtp_configured() -> bool:
    return bool(settings.smtp_host and settings.smtp_user and settings.smtp_password)


def _deliver(message: MIMEMultipart, recipients: list[str]) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        server.login(settings.smtp_user, settings.smtp_password)
        server.sendmail(message["From"], recipients, message.as_string())


async def send_email(
    to_email: str,
    subject: str,
    html_body: str,
    cc: Optional[str] = None,
    attachments: Optional[list[tuple[str, bytes, str]]] = None,
) -> bool:
    """Send one HTML email; attachments are (filename, content, subtype)."""
    from_email = settings.email_from or settings.smtp_user or "no-reply@ncc.local"
    message = MIMEMultipart()
    message["From"] = from_email
    message["To"] = to_email
    if cc:
        message["Cc"] = cc
    message["Subject"] = subject
    message.attach(MIMEText(html_body, "html"))
    for filename, content, subtype in attachments or []:
        part = MIMEApplication(content, _subtype=subtype)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        message.attach(part)

    if not _smtp_configured():
        logger.info(f"SMTP not configured; email to {to_email} not sent: {subject}")
        return True

    recipients = [to_email] + ([cc] if cc else [])
    try:
        await asyncio.to_thread(_deliver, message, recipients)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email send to {to_email} failed: {e}")
        return False
    logger.info(f"Email sent to {to_email}: {subject}")
    return True


def render_branch_report_html(report: BranchReport) -> str:
    rows = "".join(
        "<tr>"
        f"<td>{escape(s.name)}</td><td>{escape(s.regimental_number)}</td>"
        f"<td>{escape(s.category)}</td><td>{escape(s.rank)}</td>"
        f"<td>{s.stats.present}</td><td>{s.stats.absent}</td>"
        f"<td>{s.stats.late}</td><td>{s.stats.excused}</td>"
        f"<td>{s.stats.attendance_rate:.1f}%</td>"
        "</tr>"
        for s in report.students
    )
    return (
        "<html><body style=\"font-family: Arial, sans-serif;\">"
        f"<h2>Weekly NCC Attendance Report</h2>"
        f"<p><strong>Branch:</strong> {escape(report.branch)}<br>"
        f"<strong>Period:</strong> {escape(report.period)}</p>"
        f"<p>Students: {report.summary.total_students} | Parades: {report.summary.total_parades} | "
        f"Average attendance: {report.summary.average_attendance:.1f}%</p>"
        "<table border=\"1\" cellpadding=\"6\" cellspacing=\"0\">"
        "<tr><th>Name</th><th>Regimental No.</th><th>Category</th><th>Rank</th>"
        "<th>Present</th><th>Absent</th><th>Late</th><th>Excused</th><th>Rate</th></tr>"
        f"{rows}</table>"
        f"<p style=\"color: #666; font-size: 12px;\">Generated by {escape(settings.app_name)} on "
        f"{datetime.utcnow():%Y-%m-%d %H:%M} UTC</p>"
        "</body></html>"
    )


def render_parade_report_html(report: ParadeBranchReport) -> str:
    rows = "".join(
        "<tr>"
        f"<td>{escape(s['name'])}</td><td>{escape(s['regimental_number'])}</td>"
        f"<td>{escape(s['rank'])}</td><td>{escape(s['status'])}</td>"
        f"<td>{escape(s['remarks'] or '')}</td>"
        "</tr>"
        for s in report.students
    )
    return (
        "<html><body style=\"font-family: Arial, sans-serif;\">"
        f"<h2>Daily Parade Report: {escape(report.parade_name)}</h2>"
        f"<p><strong>Branch:</strong> {escape(report.branch)}<br>"
        f"<strong>Type:</strong> {escape(report.parade_type)}<br>"
        f"<strong>Date:</strong> {report.parade_date:%a %b %d %Y} {escape(report.parade_time)}<br>"
        f"<strong>Location:</strong> {escape(report.location or '-')}</p>"
        f"<p>Present: {report.present} | Absent: {report.absent} | Late: {report.late} | "
        f"Excused: {report.excused} | Not marked: {report.not_marked} | "
        f"Attendance: {report.attendance_rate:.1f}%</p>"
        "<table border=\"1\" cellpadding=\"6\" cellspacing=\"0\">"
        "<tr><th>Name</th><th>Regimental No.</th><th>Rank</th><th>Status</th><th>Remarks</th></tr>"
        f"{rows}</table>"
        "</body></html>"
    )


def _slug(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", value)


async def send_weekly_report(branch: Branch | str, now: Optional[datetime] = None) -> dict[str, Any]:
    """Mail the trailing-week report of one branch to its department."""
    branch = Branch(branch)
    end = now or datetime.utcnow()
    start = end - timedelta(days=WEEKLY_REPORT_DAYS)
    logger.info(f"Generating weekly report for {branch.value}")

    report = await build_branch_report(branch, start, end)
    recipient = department_email(branch)
    attachment = (
        f"weekly_attendance_{_slug(branch.value)}_{start:%Y-%m-%d}.json",
        json.dumps(report.model_dump(mode="json"), indent=2).encode("utf-8"),
        "json",
    )
    sent = await send_email(
        recipient,
        f"Weekly NCC Attendance Report - {branch.value} ({report.period})",
        render_branch_report_html(report),
        cc=settings.admin_email or None,
        attachments=[attachment],
    )
    result = {
        "success": sent,
        "branch": branch.value,
        "recipient_email": recipient,
        "report_period": report.period,
    }
    if not sent:
        result["error"] = "Email delivery failed"
    return result


async def send_all_weekly_reports(now: Optional[datetime] = None) -> list[dict[str, Any]]:
    results = []
    for branch in Branch:
        try:
            results.append(await send_weekly_report(branch, now=now))
        except Exception as e:
            logger.error(f"Weekly report for {branch.value} failed: {e}")
            results.append({"success": False, "branch": branch.value, "error": str(e)})
    return results


async def send_daily_parade_reports(day: Optional[date] = None) -> dict[str, Any]:
    day = day or local_today()
    reports = await build_daily_parade_report(day)
    if not reports:
        return {"success": True, "message": f"No parades found for {day.isoformat()}", "results": []}

    results = []
    for report in reports:
        recipient = department_email(report.branch)
        try:
            sent = await send_email(
                recipient,
                f"Daily Parade Report - {report.parade_name} - {report.branch} ({day:%a %b %d %Y})",
                render_parade_report_html(report),
                cc=settings.admin_email or None,
            )
        except Exception as e:
            logger.error(f"Daily parade report for {report.parade_name}/{report.branch} failed: {e}")
            sent = False
        results.append(
            {
                "success": sent,
                "parade": report.parade_name,
                "branch": report.branch,
                "recipient_email": recipient,
            }
        )
    successful = sum(1 for r in results if r["success"])
    return {
        "success": True,
        "message": f"Daily parade reports processed: {successful} of {len(results)} sent",
        "results": results,
    }


async def send_test_email(address: str) -> bool:
    return await send_email(
        address,
        "NCC Email Service Test",
        "<div style=\"padding: 20px; font-family: Arial, sans-serif;\">"
        "<h2>NCC Email Service Test</h2>"
        f"<p>This is a test email from {escape(settings.app_name)}.</p>"
        f"<p><strong>Test conducted on:</strong> {datetime.utcnow():%Y-%m-%d %H:%M} UTC</p>"
        "</div>",
    )
