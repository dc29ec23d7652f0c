"""
Notification Module - Owner alerts for unhealthy deployments
"""

from .base import Notifier
from .mailer import EmailNotifier, render_alert_html, alert_subject
from .dispatcher import NotificationDispatcher

__all__ = [
    "Notifier",
    "EmailNotifier",
    "NotificationDispatcher",
    "render_alert_html",
    "alert_subject",
]
