"""
Email Notifier

Renders an HTML health alert and delivers it over SMTP.
"""

import email.mime.text
import html
import logging
import smtplib
from string import Template
from typing import List, Tuple

from ..config import DEFAULT_LOG_TAIL_LINES, DEFAULT_OPS_MAILBOX, SMTPConfig
from ..errors import NotificationError
from ..models import FailedServiceRecord
from ..utils.time import format_detection_time
from .base import Notifier

logger = logging.getLogger(__name__)


# Placeholders use $name; the stylesheet contains no '$'
ALERT_TEMPLATE = Template("""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>
        body { font-family: 'Segoe UI', Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 800px; margin: 0 auto; padding: 20px; }
        .header { background: #0066cc; color: white; padding: 30px; border-radius: 10px 10px 0 0; text-align: center; }
        .header h1 { margin: 0; font-size: 24px; }
        .content { background: #f8f9fa; padding: 30px; border: 1px solid #dee2e6; border-top: none; }
        .alert-box { background: #fff3cd; border-left: 5px solid #f39c12; padding: 15px; margin: 20px 0; }
        .info-box { background: #d1ecf1; border: 1px solid #bee5eb; padding: 15px; margin: 20px 0; }
        .details-table { width: 100%; border-collapse: collapse; margin: 20px 0; background: white; }
        .details-table th, .details-table td { padding: 12px 15px; text-align: left; border-bottom: 1px solid #dee2e6; }
        .status-badge { padding: 4px 12px; border-radius: 20px; font-size: 12px; font-weight: 600; background: #dc3545; color: white; }
        .logs-box { background: #1e1e1e; color: #d4d4d4; padding: 15px; font-family: 'Consolas', monospace; font-size: 12px; overflow: auto; max-height: 300px; }
        .footer { text-align: center; margin-top: 30px; color: #6c757d; font-size: 12px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Kubernetes Service Health Alert</h1>
            <div>Automated Monitoring System</div>
        </div>
        <div class="content">
            <div class="alert-box">
                <strong>CRITICAL:</strong> One of your services has failed health checks and requires immediate attention.
            </div>

            <h2>Service Details</h2>
            <table class="details-table">
                <tr><th width="30%">Service Name</th><td><strong>$name</strong></td></tr>
                <tr><th>Namespace</th><td>$namespace</td></tr>
                <tr><th>Owner</th><td>$owner</td></tr>
                <tr><th>Team DL</th><td>$owner_dl</td></tr>
                <tr><th>Status</th><td><span class="status-badge">CRITICAL - SERVICE DOWN</span></td></tr>
                <tr><th>Detection Time</th><td>$check_time</td></tr>
            </table>

            <h2>Failure Analysis</h2>
            <div class="info-box">
                <strong>Root Cause:</strong> $reason
                <br><br>
                <strong>Impact:</strong> Service is unavailable or not responding to health checks.
                This may affect dependent services.
            </div>
$logs_section
            <h2>Required Actions</h2>
            <ol>
                <li>Investigate the service health in the cluster</li>
                <li>Check pod status: <code>kubectl get pods -n $namespace -l app=$name</code></li>
                <li>Review recent deployments or configuration changes</li>
                <li>Check resource utilization (CPU/Memory)</li>
                <li>Verify network connectivity and dependencies</li>
            </ol>

            <div class="info-box">
                <strong>Support:</strong> Contact the operations team at
                <a href="mailto:$ops_mailbox">$ops_mailbox</a>.
            </div>
        </div>
        <div class="footer">
            <p>
                This is an automated alert from the Kubernetes health monitor.<br>
                Environment: $namespace<br>
                &copy; $year
            </p>
        </div>
    </div>
</body>
</html>
""")

LOGS_TEMPLATE = Template("""
            <h2>Recent Logs (Last $tail_lines Lines)</h2>
            <div class="logs-box">
                <pre>$logs</pre>
            </div>
""")


def alert_subject(record: FailedServiceRecord) -> str:
    return (
        f"[URGENT] Service Health Alert: "
        f"{record.workload.namespace}/{record.workload.name} is DOWN"
    )


def render_alert_html(
    record: FailedServiceRecord,
    ops_mailbox: str = DEFAULT_OPS_MAILBOX,
    tail_lines: int = DEFAULT_LOG_TAIL_LINES,
) -> str:
    """
    Render the HTML alert body.

    Every interpolated value is HTML-escaped. The logs section is omitted
    when the record carries no excerpt.
    """
    esc = html.escape
    workload = record.workload

    logs_section = ""
    if record.pod_logs:
        logs_section = LOGS_TEMPLATE.substitute(
            tail_lines=tail_lines,
            logs=esc(record.pod_logs),
        )

    return ALERT_TEMPLATE.substitute(
        name=esc(workload.name),
        namespace=esc(workload.namespace),
        owner=esc(workload.owner_email),
        owner_dl=esc(workload.owner_dl_email),
        check_time=esc(format_detection_time(record.check_time)),
        reason=esc(record.failure_reason),
        logs_section=logs_section,
        ops_mailbox=esc(ops_mailbox),
        year=record.check_time.year,
    )


class EmailNotifier(Notifier):
    """
    SMTP alert sender.

    The owner is the primary recipient; the owner's distribution list and
    the operations mailbox are copied.

    Example:
        notifier = EmailNotifier(config.smtp, ops_mailbox=config.ops_mailbox)
        notifier.send(record)
    """

    def __init__(
        self,
        smtp_config: SMTPConfig,
        ops_mailbox: str = DEFAULT_OPS_MAILBOX,
        tail_lines: int = DEFAULT_LOG_TAIL_LINES,
    ):
        self.smtp_config = smtp_config
        self.ops_mailbox = ops_mailbox
        self.tail_lines = tail_lines

    def recipients(self, record: FailedServiceRecord) -> Tuple[List[str], List[str]]:
        """Return (to, cc) for a record."""
        to = [record.workload.owner_email]
        cc = [record.workload.owner_dl_email]
        if self.ops_mailbox:
            cc.append(self.ops_mailbox)
        return to, cc

    def build_message(self, record: FailedServiceRecord) -> email.mime.text.MIMEText:
        """Build the MIME message for a record."""
        to, cc = self.recipients(record)

        body = render_alert_html(record, ops_mailbox=self.ops_mailbox, tail_lines=self.tail_lines)
        msg = email.mime.text.MIMEText(body, "html", "utf-8")
        msg["From"] = self.smtp_config.sender
        msg["To"] = ", ".join(to)
        msg["Cc"] = ", ".join(cc)
        msg["Subject"] = alert_subject(record)
        msg["X-Priority"] = "1"
        msg["X-MSMail-Priority"] = "High"
        return msg

    def send(self, record: FailedServiceRecord) -> None:
        """
        Send the alert for one record.

        Raises:
            NotificationError: If rendering or delivery fails
        """
        try:
            msg = self.build_message(record)
        except (KeyError, ValueError) as e:
            raise NotificationError(f"failed to generate email body: {e}") from e

        to, cc = self.recipients(record)
        try:
            self._deliver(msg, to + cc)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(
                f"failed to send email via {self.smtp_config.address}: {e}"
            ) from e

        logger.debug(f"Alert for {record.workload.key} delivered to {to + cc}")

    def _deliver(self, msg, recipients: List[str]) -> None:
        cfg = self.smtp_config
        with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds) as conn:
            if not cfg.no_auth:
                if cfg.use_tls:
                    conn.starttls()
                if cfg.username:
                    conn.login(cfg.username, cfg.password)
            conn.send_message(msg, from_addr=cfg.sender or None, to_addrs=recipients)
