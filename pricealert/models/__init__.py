from .asset import Asset
from .base import Base
from .notification_rule import NotificationRule, RuleKind
from .price_history import PriceHistory
from .tracked_asset import TrackedAsset
from .triggered_alert import TriggeredAlert
from .user import User

__all__ = [
    "Asset",
    "Base",
    "NotificationRule",
    "PriceHistory",
    "RuleKind",
    "TrackedAsset",
    "TriggeredAlert",
    "User",
]
