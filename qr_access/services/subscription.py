# =======================================================================================
# qr_access/services/subscription.py - Subscription Tracker
# =======================================================================================
from datetime import date, datetime
from typing import Optional, Union

from ..models.enums import SubscriptionStatus


def subscription_status(valid_until: Optional[date], now: Union[date, datetime]) -> SubscriptionStatus:
    """
    Resolve a validity window to a status at day granularity.

    - no window          -> inactive
    - last day < today   -> expired
    - otherwise          -> active (the last day itself is still valid)
    """
    if valid_until is None:
        return SubscriptionStatus.INACTIVE
    today = now.date() if isinstance(now, datetime) else now
    if isinstance(valid_until, datetime):
        valid_until = valid_until.date()
    if valid_until < today:
        return SubscriptionStatus.EXPIRED
    return SubscriptionStatus.ACTIVE
