from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .errors import ConfigurationError
from .models import Event

@dataclass
class LiveEventConfig:
    offset_seconds: Optional[int] = None
    filter_field: Optional[str] = None
    filter_value: Optional[str] = None
    filter_type: Optional[str] = None

@dataclass
class CalendarConfig:
    events: List[Event] = field(default_factory=list)

@dataclass
class AppConfig:
    timezone: str
    live_event: LiveEventConfig
    calendar: CalendarConfig

def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)

def _parse_offset(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"offset_seconds must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"offset_seconds must be an integer, got {value!r}") from exc

def _parse_instant(value: Any, tz: ZoneInfo, key: str) -> datetime:
    # PyYAML already turns unquoted timestamps into datetime/date objects
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, datetime.min.time())
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise ConfigurationError(f"Event {key} is not an ISO 8601 datetime: {value!r}") from exc
    return dt if dt.tzinfo else dt.replace(tzinfo=tz)

def parse_live_event(data: Dict[str, Any]) -> LiveEventConfig:
    return LiveEventConfig(
        offset_seconds=_parse_offset(data.get("offset_seconds")),
        filter_field=_optional_str(data.get("filter_field")),
        filter_value=_optional_str(data.get("filter_value")),
        filter_type=_optional_str(data.get("filter_type")),
    )

def parse_events(items: List[Dict[str, Any]], tz: ZoneInfo) -> List[Event]:
    events: List[Event] = []
    for item in items:
        if not isinstance(item, dict) or "start" not in item or "end" not in item:
            raise ConfigurationError(f"Calendar events need a start and an end: {item!r}")
        try:
            events.append(Event(
                title=str(item.get("title", "(No title)")),
                start=_parse_instant(item["start"], tz, "start"),
                end=_parse_instant(item["end"], tz, "end"),
                description=_optional_str(item.get("description")),
                location=_optional_str(item.get("location")),
                comment=_optional_str(item.get("comment")),
                contact=_optional_str(item.get("contact")),
            ))
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    return events

def _section(data: Dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise ConfigurationError(f"{key} must be a {'mapping' if kind is dict else 'list'}, got {value!r}")
    return value

def load_config(path: str) -> AppConfig:
    p = Path(path)
    data: Dict[str, Any] = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping at the top level")

    timezone = str(data.get("timezone", "UTC"))
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown timezone {timezone!r}") from exc

    live_event = _section(data, "live_event", dict)
    calendar = _section(data, "calendar", dict)
    events = _section(calendar, "events", list)

    return AppConfig(
        timezone=timezone,
        live_event=parse_live_event(live_event),
        calendar=CalendarConfig(events=parse_events(events, tz)),
    )
