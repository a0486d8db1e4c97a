from __future__ import annotations

from datetime import date, timedelta

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB


def day_title(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return day.strftime("%d %b %Y")


def format_size(num_bytes: float) -> str:
    value = float(num_bytes)
    if value >= GIB:
        return f"{value / GIB:0.2f} GB"
    if value >= MIB:
        return f"{value / MIB:0.2f} MB"
    return f"{value / KIB:0.2f} KB"
