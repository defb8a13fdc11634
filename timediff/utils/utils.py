from datetime import time, timedelta

from timediff.models import TimeInterval, format_time


def style_time(value: time) -> str:
    """Format a time of day with styling"""
    return f"[bold italic]{format_time(value)}[/bold italic]"


def style_interval(interval: TimeInterval) -> str:
    return f"({style_time(interval.start)}-{style_time(interval.end)})"


def style_duration(duration: timedelta) -> str:
    """Format duration in a readable way"""
    total_minutes = int(duration.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes:02d}m"
