"""
Run-completion notifications.

Posts the end-of-run summary to a Slack incoming webhook and e-mails it
through the configured SMTP relay. Delivery problems are logged and reported
as False; they never fail the run.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, Optional

import aiohttp

from ..core.config import Config
from .models import TestRunSummary


def summary_lines(summary: TestRunSummary) -> list:
    results = summary.results
    if results is None:
        counts = ["Total Tests: N/A", "Passed: N/A", "Failed: N/A"]
    else:
        counts = [
            f"Total Tests: {results.total_tests}",
            f"Passed: {results.passed}",
            f"Failed: {results.failed + results.errors}",
        ]
    duration = f"{round(summary.run_duration)}s" if summary.run_duration else "N/A"
    return [f"Environment: {summary.environment}", *counts, f"Duration: {duration}"]


class Notifier:
    """Sends the run summary to the configured channels."""

    def __init__(self, config: Config, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    async def notify(self, summary: TestRunSummary) -> Dict[str, bool]:
        """
        Send the summary to every configured channel.

        Returns:
            Delivery outcome per attempted channel ("slack", "email")
        """
        outcomes = {}
        if self.config.slack_webhook_url:
            outcomes["slack"] = await self.send_slack(summary)
        if self.config.smtp_host and self.config.notify_email:
            outcomes["email"] = await self.send_email(summary)
        if not outcomes:
            self.logger.debug("No notification channel configured")
        return outcomes

    def build_slack_message(self, summary: TestRunSummary) -> Dict[str, Any]:
        return {
            "text": f"Test Run Completed - {summary.environment}",
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": "*Test Run Summary*\n" + "\n".join(summary_lines(summary)),
                    },
                }
            ],
        }

    async def send_slack(self, summary: TestRunSummary) -> bool:
        """Post the summary to the Slack webhook."""
        webhook_url = self.config.slack_webhook_url
        if not webhook_url:
            self.logger.debug("No Slack webhook configured")
            return False

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    webhook_url,
                    json=self.build_slack_message(summary),
                    timeout=aiohttp.ClientTimeout(total=30),
                ) as response:
                    if response.status == 200:
                        self.logger.info("Slack notification sent")
                        return True
                    self.logger.warning(f"Slack notification failed with status {response.status}")
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.error(f"Failed to send Slack notification: {e!r}")
            return False

    def build_email(self, summary: TestRunSummary) -> EmailMessage:
        status = "FAILED" if summary.has_failures else "PASSED"
        message = EmailMessage()
        message["Subject"] = f"[{status}] Test run - {summary.environment}"
        message["From"] = self.config.smtp_user or f"qa-framework@{self.config.smtp_host}"
        message["To"] = self.config.notify_email
        body = summary_lines(summary)
        if summary.failures:
            body.append("")
            body.append("Failures:")
            body.extend(f"  {case.classname}::{case.name}" for case in summary.failures)
        message.set_content("\n".join(body))
        return message

    def _deliver_email(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as smtp:
            if self.config.smtp_user:
                smtp.starttls()
                smtp.login(self.config.smtp_user, self.config.smtp_password or "")
            smtp.send_message(message)

    async def send_email(self, summary: TestRunSummary) -> bool:
        """E-mail the summary through the SMTP relay."""
        if not (self.config.smtp_host and self.config.notify_email):
            self.logger.debug("No SMTP relay or recipient configured")
            return False

        message = self.build_email(summary)
        try:
            await asyncio.get_running_loop().run_in_executor(None, self._deliver_email, message)
        except (smtplib.SMTPException, OSError) as e:
            self.logger.error(f"Failed to send email notification: {e!r}")
            return False

        self.logger.info(f"Email notification sent to {self.config.notify_email}")
        return True
