"""Notification utilities - email."""

from src.tablehost.core.notifications.email import send_setup_link_email

__all__ = ["send_setup_link_email"]
