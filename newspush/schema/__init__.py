"""Schema package exports."""

from .push_notifications import PushNotification
from .push_subscriptions import PushSubscription

__all__ = ["PushNotification", "PushSubscription"]
