"""
Structured records exchanged with the remote store and the change feed.

Rows arrive as plain mappings. They are validated here, once, at the
boundary; everything past this module works with typed, immutable records.
"""
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from smartmark.errors import MalformedRecordError

BookmarkId = Union[int, str]


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp (or pass a datetime through)."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    raise MalformedRecordError(f"Invalid timestamp: {value!r}")


def _check_id(value: Any, name: str = "id") -> BookmarkId:
    # bool is an int subclass; a True/False id is always a bug upstream
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise MalformedRecordError(f"Missing or invalid {name}: {value!r}")
    if isinstance(value, str) and not value:
        raise MalformedRecordError(f"Empty {name}")
    return value


@dataclass(frozen=True)
class BookmarkRecord:
    """
    A bookmark row as seen by a client session.

    Attributes:
        id: Identifier assigned by the store
        title: Bookmark title
        url: Absolute URL
        user_id: Owner identifier (None when the payload omits it)
        created_at: Creation timestamp assigned by the store
    """
    id: BookmarkId
    title: str
    url: str
    user_id: Any = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BookmarkRecord":
        """
        Build a record from a store row or feed payload.

        Raises:
            MalformedRecordError: If a required field is missing or has the wrong type
        """
        if not isinstance(payload, Mapping):
            raise MalformedRecordError(f"Expected a mapping, got {type(payload).__name__}")

        title = payload.get("title")
        url = payload.get("url")
        if not isinstance(title, str) or not title:
            raise MalformedRecordError(f"Missing or invalid title: {title!r}")
        if not isinstance(url, str) or not url:
            raise MalformedRecordError(f"Missing or invalid url: {url!r}")

        return cls(
            id=_check_id(payload.get("id")),
            title=title,
            url=url,
            user_id=payload.get("user_id"),
            created_at=_parse_timestamp(payload.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class UserRecord:
    """The signed-in user, as reported by the store."""
    id: Any
    email: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        """Full name, then name, then email."""
        return self.metadata.get("full_name") or self.metadata.get("name") or self.email

    @property
    def avatar_url(self) -> Optional[str]:
        return self.metadata.get("avatar_url")

    @property
    def initial(self) -> str:
        """Avatar fallback: first letter of the display name."""
        name = self.display_name
        return name[0].upper() if name else "?"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "metadata": dict(self.metadata)}


class EventType(Enum):
    """Row-level change types carried by the change feed."""
    INSERT = "INSERT"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """
    One row-level change on a table.

    Inserts carry the full new row in ``new``. Deletes carry only the primary
    key in ``old``.
    """
    event_type: EventType
    table: str
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None
    sequence: Optional[int] = None
    commit_timestamp: Optional[datetime] = None

    @property
    def record(self) -> Dict[str, Any]:
        """The row mapping handed to subscribers."""
        if self.event_type is EventType.INSERT:
            return dict(self.new or {})
        return dict(self.old or {})
