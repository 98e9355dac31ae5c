"""Session state with pending-delta tracking.

`SessionState` is the key-value store owned by a session. All writes go
through `apply_delta`, so a threaded host only has to guard that one method.

`State` is a read-through view used by tools and callbacks: reads see the
session's committed values overlaid with the pending delta of the event being
built, and writes land in that delta only. The delta reaches the session when
the session service appends the event.
"""

from collections.abc import Iterator, Mapping
from typing import Any

TEMP_PREFIX = "temp:"

_MISSING = object()


class SessionState(Mapping[str, Any]):
    """Key-value session state that remembers which keys changed since last persist."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})
        self._dirty: set[str] = set()

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"SessionState({self._values!r}, dirty={sorted(self._dirty)!r})"

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._values

    def set(self, key: str, value: Any) -> None:
        self.apply_delta({key: value})

    def delete(self, key: str) -> None:
        if key in self._values:
            self.apply_delta({}, removed=(key,))

    def apply_delta(self, delta: Mapping[str, Any], removed: tuple[str, ...] = ()) -> None:
        """Apply a batch of writes and removals.

        Args:
            delta: Keys to set
            removed: Keys to delete
        """
        for key, value in delta.items():
            self._values[key] = value
            self._dirty.add(key)
        for key in removed:
            self._values.pop(key, None)
            self._dirty.add(key)

    def has_delta(self) -> bool:
        return bool(self._dirty)

    @property
    def pending_keys(self) -> frozenset[str]:
        return frozenset(self._dirty)

    def clear_delta(self) -> None:
        self._dirty.clear()

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "SessionState":
        return cls(values)


class State:
    """Delta-aware view over committed state.

    Args:
        value: Committed state to read through to
        delta: Pending changes; writes are recorded here
    """

    def __init__(self, value: Mapping[str, Any], delta: dict[str, Any]) -> None:
        self._value = value
        self._delta = delta

    def __getitem__(self, key: str) -> Any:
        if key in self._delta:
            return self._delta[key]
        return self._value[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._delta[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._delta or key in self._value

    def get(self, key: str, default: Any = None) -> Any:
        value = self._delta.get(key, _MISSING)
        if value is not _MISSING:
            return value
        return self._value.get(key, default)

    def update(self, values: Mapping[str, Any]) -> None:
        self._delta.update(values)

    def has_delta(self) -> bool:
        return bool(self._delta)

    def to_dict(self) -> dict[str, Any]:
        return {**self._value, **self._delta}
