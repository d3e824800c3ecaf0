"""Business-local clock helpers."""

import os
from datetime import date, datetime
from typing import Optional

from dateutil import tz

DEFAULT_TIMEZONE = "UTC"


def get_business_timezone(timezone_name: Optional[str] = None):
    """Resolve the business time zone.

    Args:
        timezone_name: IANA zone name. If None, checks GROOMREPORTS_TIMEZONE
            environment variable, then defaults to UTC.

    Raises:
        ValueError: If the zone name is unknown
    """
    if timezone_name is None:
        timezone_name = os.environ.get("GROOMREPORTS_TIMEZONE", DEFAULT_TIMEZONE)

    zone = tz.gettz(timezone_name)
    if zone is None:
        raise ValueError(f"Unknown time zone '{timezone_name}'")
    return zone


def business_today(timezone_name: Optional[str] = None) -> date:
    """Return today's calendar date in the business time zone."""
    return datetime.now(get_business_timezone(timezone_name)).date()
