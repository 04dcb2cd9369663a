"""
Unified Email Workflow for the assessment portal.
Renders template-based HTML mail and hands it to the configured transport.
"""

import html
import logging
from typing import Dict, Any
from datetime import datetime

import config


logger = logging.getLogger(__name__)

_LAYOUT = """<!DOCTYPE html>
<html>
  <body style="margin:0; padding:0; font-family: Arial, sans-serif; background-color:#f7f7f7;">
    <table align="center" width="600" cellpadding="0" cellspacing="0" style="background-color:#ffffff; border: 1px solid #e0e0e0;">
      <tr>
        <td style="padding:30px; color:#333333; font-size:15px; line-height:1.6;">
{content}
        </td>
      </tr>
    </table>
  </body>
</html>"""

_RESULT_TABLE = """
<table cellpadding="8" cellspacing="0" style="border-collapse: collapse; border: 1px solid black;">
  <tr style="background-color: #f2f2f2;">
    <th style="border: 1px solid black;">Candidate Name</th><th style="border: 1px solid black;">Username</th><th style="border: 1px solid black;">Score</th><th style="border: 1px solid black;">Percentage</th><th style="border: 1px solid black;">Status</th><th style="border: 1px solid black;">Completion Time</th>
  </tr>
  <tr>
    <td style="border: 1px solid black;">{candidate_name}</td><td style="border: 1px solid black;">{username}</td><td style="border: 1px solid black;">{result}</td><td style="border: 1px solid black;">{score}</td><td style="border: 1px solid black;">{status}</td><td style="border: 1px solid black;">{completed_at}</td>
  </tr>
</table>"""


class EmailWorkflow:
    """Template-based mail for candidate invitations, staff credentials and results."""

    def __init__(self, sender=None):
        self.email_service = config.EMAIL_SERVICE
        self.email_templates = self._load_templates()
        self.sender = sender
        if self.sender is None:
            self._setup_email_service()

    def _load_templates(self) -> Dict[str, Dict[str, str]]:
        """Load email templates for each portal event."""
        return {
            "candidate_invitation": {
                "subject": "Candidate Assessment Test",
                "body": """
<h2 style="color:#002b5c; margin-top:0;">Hi, {candidate_name},</h2>
<p>You have been shortlisted to take the <b>Candidate Assessment Test</b>. Below are your login credentials.</p>
<p><b>Login Credentials</b><br>Username: <b>{username}</b><br>Password: <b>{password}</b></p>
<p><b>Test Instructions</b><br>The test can be attempted only once. Switching away from the test window ends the attempt.</p>
<p style="margin-top:20px;"><a href="{app_url}/test" style="color:#002b5c; font-weight:bold;">Start Assessment Test</a></p>
"""
            },
            "staff_credentials": {
                "subject": "Your {portal_name} Credentials",
                "body": """
<h2 style="color:#002b5c; margin-top:0;">Hi, {full_name}!</h2>
<p>You can now access the {portal_name} using the credentials below.</p>
<p>Your assigned role is: <b>{role}</b></p>
<p style="padding: 15px; background-color: #f1f1f1;">
  <b>Login Credentials</b><br>
  Username: <b>{username}</b><br>
  Password: <b>{password}</b>
</p>
<p style="margin-top:20px;"><a href="{app_url}/{portal_path}" style="color:#002b5c; font-weight:bold;">Click Here to Login</a></p>
"""
            },
            "assessment_result": {
                "subject": "Assessment Result for {candidate_name}",
                "body": """
<p>Hi {recruiter_name},</p>
<p>{summary}</p>
<p><b>Assessment Details:</b></p>
{result_table}
"""
            },
        }

    def render(self, template_type: str, **kwargs) -> Dict[str, str]:
        template = self.email_templates[template_type]
        # result_table is pre-rendered markup; everything else is user data.
        values = {k: v if k == "result_table" else html.escape(str(v)) for k, v in kwargs.items()}
        return {
            "subject": template["subject"].format(**kwargs),
            "body": _LAYOUT.format(content=template["body"].format(**values)),
        }

    async def send_email(self, template_type: str, recipient_email: str, **kwargs) -> Dict[str, Any]:
        """Unified method to send emails using templates."""
        if template_type not in self.email_templates:
            return {"status": "error", "message": f"Template '{template_type}' not found"}

        try:
            rendered = self.render(template_type, **kwargs)
            if self._is_email_configured():
                success = await self.sender.send_email(recipient_email, rendered["subject"], rendered["body"])
                if not success:
                    return {"status": "error", "message": "Failed to send email", "template": template_type}
            else:
                logger.info("[EMAIL MOCK] To: %s | Subject: %s", recipient_email, rendered["subject"])
                logger.debug("[EMAIL MOCK] Body: %s", rendered["body"])
                return {
                    "status": "mocked",
                    "message": f"No mail transport configured; email to {recipient_email} was logged only",
                    "template": template_type
                }
        except Exception as e:
            # Mail is best-effort: the caller's transaction has already committed.
            logger.exception("Email '%s' to %s failed", template_type, recipient_email)
            return {
                "status": "error",
                "message": f"Failed to send email: {str(e)}",
                "template": template_type
            }

        return {
            "status": "success",
            "message": f"Email sent to {recipient_email}",
            "template": template_type,
            "timestamp": datetime.now().isoformat()
        }

    def _setup_email_service(self):
        """Setup email service based on configuration."""
        if self.email_service == "sendgrid" and config.SENDGRID_API_KEY:
            from .sendgrid_setup import SendGridSender
            self.sender = SendGridSender()
        elif self.email_service == "smtp" and config.MAIL_HOST:
            from .smtp_setup import SmtpSender
            self.sender = SmtpSender()
        else:
            self.sender = None

    def _is_email_configured(self) -> bool:
        """Check if email service is configured."""
        return self.sender is not None


# Global email workflow instance
email_workflow = EmailWorkflow()


def render_result_table(candidate_name: str, username: str, result: str, score: str,
                        status: str, completed_at: str) -> str:
    return _RESULT_TABLE.format(
        candidate_name=html.escape(candidate_name),
        username=html.escape(username),
        result=html.escape(result),
        score=html.escape(score),
        status=html.escape(status),
        completed_at=html.escape(completed_at),
    )


async def send_candidate_invitation_email(candidate_email: str, candidate_name: str,
                                          username: str, password: str) -> Dict[str, Any]:
    """Send the one-time test credentials to a new candidate."""
    return await email_workflow.send_email(
        "candidate_invitation",
        candidate_email,
        candidate_name=candidate_name,
        username=username,
        password=password,
        app_url=config.APP_URL
    )


async def send_staff_credentials_email(email: str, full_name: str, role: str, username: str,
                                       password: str, portal_name: str, portal_path: str) -> Dict[str, Any]:
    """Send login credentials to a newly onboarded staff member."""
    return await email_workflow.send_email(
        "staff_credentials",
        email,
        full_name=full_name,
        role=role,
        username=username,
        password=password,
        portal_name=portal_name,
        portal_path=portal_path,
        app_url=config.APP_URL
    )


async def send_assessment_result_email(recruiter_email: str, recruiter_name: str, candidate_name: str,
                                       summary: str, result_table: str) -> Dict[str, Any]:
    """Send a candidate's verdict to the recruiter who onboarded them."""
    return await email_workflow.send_email(
        "assessment_result",
        recruiter_email,
        recruiter_name=recruiter_name,
        candidate_name=candidate_name,
        summary=summary,
        result_table=result_table
    )
