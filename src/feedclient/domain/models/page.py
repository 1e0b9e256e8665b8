"""Page model - read-only view over a paginated response envelope"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Page:
    """One page of a paginated listing.

    Understands both the news envelope (``currentPage``/``hasNext``) and the
    Spring Data page envelope used by the feed service (``number``/``last``).
    Item fields are left as the backend sent them.
    """

    content: List[Dict[str, Any]] = field(default_factory=list)
    number: int = 0
    size: int = 0
    total_elements: int = 0
    total_pages: int = 0
    has_next: bool = False
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Any) -> "Page":
        """Build a Page from a decoded JSON envelope

        Raises:
            ValueError: If payload is not a page envelope
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("content"), list):
            raise ValueError("Response is not a paginated envelope (missing 'content' list)")

        content = payload["content"]
        number = _as_int(payload, "currentPage", "number")
        total_pages = _as_int(payload, "totalPages")
        if "hasNext" in payload:
            has_next = bool(payload["hasNext"])
        elif "last" in payload:
            has_next = not payload["last"]
        else:
            has_next = number + 1 < total_pages

        return cls(
            content=content,
            number=number,
            size=_as_int(payload, "size", "pageSize", default=len(content)),
            total_elements=_as_int(payload, "totalElements", default=len(content)),
            total_pages=total_pages,
            has_next=has_next,
            raw=payload,
        )

    def __len__(self) -> int:
        return len(self.content)


def _as_int(payload: Dict[str, Any], *keys: str, default: int = 0) -> int:
    """First non-null value among ``keys`` as an int (null counts as missing)

    Raises:
        ValueError: If the value is not a number
    """
    for key in keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"'{key}' is not a number: {value!r}")
        try:
            return int(value)
        except OverflowError as e:  # inf
            raise ValueError(f"'{key}' is not a finite number: {value!r}") from e
    return default
