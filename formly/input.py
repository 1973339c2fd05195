"""Request-derived form state: flashed old input, validation errors and defaults."""

from __future__ import annotations

import dataclasses
import enum
import re
from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError


class _Missing:
    """Marker for "nothing recorded", distinct from a recorded None."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()
_BRACKET_PATTERN = re.compile(r"\[([^\]]*)\]")


def dotted_name(name: str) -> str:
    """Convert bracket array syntax to a dotted lookup path. user[address][city] -> user.address.city"""
    return _BRACKET_PATTERN.sub(lambda m: f".{m.group(1)}" if m.group(1) else "", name)


def bracket_name(loc: tuple | list) -> str:
    """Convert a location tuple to a bracketed field name. ("user", "name") -> user[name]"""
    if not loc:
        return ""
    head, *rest = (str(part) for part in loc)
    return head + "".join(f"[{part}]" for part in rest)


def normalize_defaults(value: Any) -> Any:
    """Recursively turn models, dataclasses, objects and sequences into plain dicts.

    Sequences become dicts keyed by the string index so that every level can be
    addressed by a dotted path.
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    if isinstance(value, Mapping):
        return {str(k): normalize_defaults(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return {str(i): normalize_defaults(v) for i, v in enumerate(value)}
    if isinstance(value, enum.Enum):
        return value.value
    if value is None or isinstance(value, (str, bytes, int, float, bool)):
        return value
    if hasattr(value, "__dict__"):
        return {
            k: normalize_defaults(v)
            for k, v in vars(value).items()
            if not k.startswith("_")
        }
    return value


def lookup_path(data: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Walk a nested mapping using a dotted path."""
    if path in data:
        return data[path]

    current: Any = data
    for segment in path.split("."):
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        else:
            return default
    return current


class OldInput:
    """Read-only view of the submission flashed by the previous failed request."""

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = dict(data or {})

    def get(self, name: str, default: Any = MISSING) -> Any:
        """Return the recorded value for *name*, or *default* when nothing was recorded.

        The raw field name is tried first (flat form posts keep bracketed keys),
        then the dotted path inside nested data.
        """
        if name in self._data:
            return self._data[name]
        return lookup_path(self._data, dotted_name(name), default)

    def has(self, name: str) -> bool:
        return self.get(name) is not MISSING

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __bool__(self) -> bool:
        return bool(self._data)

    def __repr__(self) -> str:
        return f"OldInput({self._data!r})"


class MessageBag:
    """Ordered collection of validation messages keyed by field name.

    Usage:
        errors = MessageBag({"email": ["Email is required"]})
        errors.first("email")   # "Email is required"
        errors.first("name")    # None
    """

    def __init__(self, messages: Mapping[str, Any] | None = None):
        self._messages: dict[str, list[str]] = {}
        for key, value in (messages or {}).items():
            if isinstance(value, (list, tuple)):
                for message in value:
                    self.add(key, message)
            else:
                self.add(key, value)

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> MessageBag:
        """Collect pydantic validation errors, keyed by bracketed field name."""
        bag = cls()
        for err in error.errors():
            key = bracket_name(err["loc"]) or "__form__"
            bag.add(key, err["msg"])
        return bag

    @classmethod
    def coerce(cls, errors: Any) -> MessageBag:
        """Build a bag from a bag, a mapping, a ValidationError or None."""
        if isinstance(errors, MessageBag):
            return errors
        if isinstance(errors, ValidationError):
            return cls.from_validation_error(errors)
        if errors is None:
            return cls()
        return cls(errors)

    def add(self, key: str, message: Any) -> MessageBag:
        message = str(message)
        messages = self._messages.setdefault(key, [])
        if message not in messages:
            messages.append(message)
        return self

    def has(self, key: str) -> bool:
        return bool(self._messages.get(key))

    def first(self, key: str) -> str | None:
        """Get the first message for a field (None if there is none)."""
        messages = self._messages.get(key)
        return messages[0] if messages else None

    def get(self, key: str) -> list[str]:
        return list(self._messages.get(key, []))

    def all(self) -> list[str]:
        return [message for messages in self._messages.values() for message in messages]

    def keys(self) -> list[str]:
        return list(self._messages)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(messages) for key, messages in self._messages.items()}

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return sum(len(messages) for messages in self._messages.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"MessageBag({self._messages!r})"
