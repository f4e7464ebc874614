"""
Email delivery of finished audit reports.
"""
import asyncio
import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Any

from siteaudit.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailConfig:
    host: str = ""
    port: int = 587
    user: str = ""
    password: str = ""
    sender: str = "reports@siteaudit.local"
    use_tls: bool = True

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    @classmethod
    def from_settings(cls) -> "EmailConfig":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            sender=settings.SMTP_FROM,
            use_tls=settings.SMTP_USE_TLS,
        )


class NotificationService:
    """Sends audit reports by email."""

    def __init__(self, config: EmailConfig | None = None):
        self.config = config or EmailConfig.from_settings()

    async def send_report(self, report: dict[str, Any], recipient: str) -> dict:
        """Email a report summary. Returns a delivery result, never raises."""
        if not self.config.enabled:
            return {"channel": "email", "success": False, "error": "SMTP not configured"}

        msg = MIMEMultipart("alternative")
        msg["Subject"] = f"[SiteAudit] SEO report for {report.get('url', '')}"
        msg["From"] = self.config.sender
        msg["To"] = recipient
        msg.attach(MIMEText(self.build_email_body(report), "html"))

        # Send in thread pool to not block
        try:
            await asyncio.get_running_loop().run_in_executor(None, self._send_smtp, msg, [recipient])
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send failed: {e}")
            return {
                "channel": "email",
                "success": False,
                "error": str(e),
                "sent_at": datetime.now(timezone.utc).isoformat(),
            }

        logger.info(f"Report for {report.get('url')} emailed to {recipient}")
        return {
            "channel": "email",
            "success": True,
            "recipients": [recipient],
            "sent_at": datetime.now(timezone.utc).isoformat(),
        }

    def _send_smtp(self, msg: MIMEMultipart, recipients: list[str]):
        """Sync SMTP send (run in thread pool)."""
        with smtplib.SMTP(self.config.host, self.config.port) as server:
            if self.config.use_tls:
                server.starttls()
            if self.config.user and self.config.password:
                server.login(self.config.user, self.config.password)
            server.sendmail(self.config.sender, recipients, msg.as_string())

    def build_email_body(self, report: dict[str, Any]) -> str:
        """Build HTML email body."""
        metrics = report.get("metrics", {})
        structure = report.get("structure", {})
        competitive = structure.get("competitive_analysis", {})
        advice = report.get("report") or {}

        def bullet_list(items) -> str:
            return "".join(f"<li>{escape(str(item))}</li>" for item in items)

        recommendations = "".join(
            f"<li><strong>{escape(str(r.get('priority', '')))}</strong> "
            f"{escape(str(r.get('issue', '')))}: {escape(str(r.get('fix', '')))}</li>"
            for r in advice.get("recommendations", [])
            if isinstance(r, dict)
        )

        return f"""
        <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background-color: #3498db; color: white; padding: 20px; border-radius: 5px 5px 0 0;">
                <h1 style="margin: 0;">SEO Report: grade {escape(str(competitive.get('overall_grade', '-')))}</h1>
            </div>
            <div style="padding: 20px; border: 1px solid #ddd; border-top: none;">
                <h2>{escape(str(report.get('url', '')))}</h2>
                <p><strong>Performance:</strong> {metrics.get('performance', 0)}/100
                   &nbsp; <strong>SEO:</strong> {metrics.get('seo', 0)}/100</p>
                <p>{escape(str(advice.get('summary', '')))}</p>
                <h3>Strengths</h3><ul>{bullet_list(competitive.get('strengths', []))}</ul>
                <h3>Weaknesses</h3><ul>{bullet_list(competitive.get('weaknesses', []))}</ul>
                <h3>Recommendations</h3><ul>{recommendations}</ul>
                <hr>
                <p style="color: #666; font-size: 12px;">Generated {escape(str(report.get('timestamp', '')))}</p>
            </div>
        </body>
        </html>
        """
