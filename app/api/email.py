"""On-demand email reports (super admin only)."""
from fastapi import APIRouter
from pydantic import BaseModel, EmailStr

from app.api.deps import SuperAdmin
from app.errors import ValidationFailure
from app.models.student import Branch
from app.services import notifications
from app.services.students import list_branches

router = APIRouter()


class TestEmailRequest(BaseModel):
    test_email: EmailStr


@router.get("/branches")
async def email_branches(admin: SuperAdmin):
    return list_branches()


# Registered before /weekly/{branch} so "all" is not taken as a branch name
@router.post("/weekly/all")
async def send_all_weekly(admin: SuperAdmin):
    results = await notifications.send_all_weekly_reports()
    successful = sum(1 for r in results if r["success"])
    return {
        "message": "Weekly reports processed for all branches",
        "summary": {
            "total_branches": len(results),
            "successful": successful,
            "failed": len(results) - successful,
        },
        "results": results,
    }


@router.post("/weekly/{branch}")
async def send_weekly(branch: str, admin: SuperAdmin):
    try:
        branch_value = Branch(branch)
    except ValueError:
        raise ValidationFailure("Invalid branch name")
    result = await notifications.send_weekly_report(branch_value)
    message = "Weekly report sent successfully" if result["success"] else "Failed to send weekly report"
    return {"message": message, **result}


@router.post("/daily-parade")
async def send_daily_parade(admin: SuperAdmin):
    return await notifications.send_daily_parade_reports()


@router.post("/test")
async def send_test(data: TestEmailRequest, admin: SuperAdmin):
    sent = await notifications.send_test_email(data.test_email)
    return {
        "message": "Test email sent successfully" if sent else "Failed to send test email",
        "success": sent,
        "test_email": data.test_email,
    }
