from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type, TypeVar

from .errors import ConfigurationError
from .models import Event

E = TypeVar("E", bound=Enum)


class Field(Enum):
    SUMMARY = "title"
    DESCRIPTION = "description"
    LOCATION = "location"
    COMMENT = "comment"
    CONTACT = "contact"


class MatchType(Enum):
    TEXT = "text"       # case-insensitive substring
    WORDS = "words"     # every word of the value appears as a word of the field
    REGEX = "regex"     # case-insensitive full match


def _normalize(value: str) -> str:
    return " ".join(value.strip().lower().split())


@dataclass(frozen=True)
class EventTextFilter:
    field: Field
    value: str
    match_type: MatchType

    def matches(self, event: Event) -> bool:
        text = getattr(event, self.field.value, None)
        if not text:
            return False

        if self.match_type is MatchType.TEXT:
            return _normalize(self.value) in _normalize(text)
        if self.match_type is MatchType.WORDS:
            words = set(_normalize(text).split())
            wanted = _normalize(self.value).split()
            return bool(wanted) and all(w in words for w in wanted)
        return re.fullmatch(self.value, text, flags=re.IGNORECASE | re.DOTALL) is not None


def lookup_member(enum_cls: Type[E], name: Optional[str]) -> Optional[E]:
    """Find an enum member by name, or None when the name is unknown."""
    if name is None:
        return None
    return {m.name: m for m in enum_cls}.get(name.strip().upper())


def select_filter(
    field_name: Optional[str],
    match_type: Optional[str],
    match_value: Optional[str],
) -> Optional[EventTextFilter]:
    """Build the text filter described by the three live event settings.

    No value means no filtering. A value without both a field and a match type,
    or with names that are not recognized, is a configuration error.
    """
    if match_value is None:
        return None
    if not field_name or not match_type:
        raise ConfigurationError("Text filter settings are incomplete.")

    field = lookup_member(Field, field_name)
    kind = lookup_member(MatchType, match_type)
    if field is None or kind is None:
        raise ConfigurationError(
            f"Text filter field or type not recognized: field={field_name!r}, type={match_type!r}"
        )
    if kind is MatchType.REGEX:
        try:
            re.compile(match_value)
        except re.error as exc:
            raise ConfigurationError(f"Text filter pattern is not a valid regular expression: {exc}") from exc
    return EventTextFilter(field=field, value=match_value, match_type=kind)
