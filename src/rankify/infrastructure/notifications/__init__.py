"""Notification delivery channels."""

from .broker import NotificationBroker

__all__ = ["NotificationBroker"]
