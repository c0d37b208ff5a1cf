"""
展示相关的格式化工具
金额、电话、时间的统一格式，以及预计送达时间
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..config.settings import settings

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CNY": "¥"}

_NON_DIGIT = re.compile(r"\D")


def digits_only(value: str) -> str:
    """去掉所有非数字字符"""
    return _NON_DIGIT.sub("", value or "")


def format_currency(amount, currency: Optional[str] = None) -> str:
    """金额格式化为 $1,234.50 形式"""
    currency = currency or settings.currency
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_phone_number(phone: str) -> str:
    """10位号码格式化为 (XXX) XXX-XXXX，其他长度原样返回"""
    cleaned = digits_only(phone)
    if len(cleaned) != 10:
        return phone
    return f"({cleaned[:3]}) {cleaned[3:6]}-{cleaned[6:]}"


def estimated_delivery_time(now: Optional[datetime] = None,
                            minutes: Optional[int] = None) -> datetime:
    """预计送达时间，默认下单后20分钟"""
    now = now or datetime.now(timezone.utc)
    if minutes is None:
        minutes = settings.estimated_delivery_minutes
    return now + timedelta(minutes=minutes)


def format_date(value: datetime, now: Optional[datetime] = None) -> str:
    """
    今天的时间显示为 "Today at 14:05"，昨天显示为 "Yesterday at 14:05"，
    其他日期显示为 "Mar 3, 2025 14:05"
    """
    now = now or datetime.now(value.tzinfo or timezone.utc)
    if value.tzinfo is not None and now.tzinfo is not None:
        value = value.astimezone(now.tzinfo)
    time_part = value.strftime("%H:%M")
    if value.date() == now.date():
        return f"Today at {time_part}"
    if value.date() == (now - timedelta(days=1)).date():
        return f"Yesterday at {time_part}"
    return f"{value.strftime('%b')} {value.day}, {value.year} {time_part}"
