"""Typed event dispatch table with explicit priorities."""
from __future__ import annotations

import inspect
import itertools
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable


DEFAULT_PRIORITY = 10

Callback = Callable[..., Any]


@dataclass(frozen=True, slots=True, order=True)
class HookEntry:
    """Registered callback; lower ``priority`` runs first, ties keep registration order."""

    priority: int
    sequence: int
    callback: Callback = field(compare=False)
    owner: str | None = field(default=None, compare=False)


class HookRegistry:
    """Actions and filters keyed by event name."""

    def __init__(self) -> None:
        self._entries: dict[str, list[HookEntry]] = defaultdict(list)
        self._counter = itertools.count()

    def add(
        self,
        event: str,
        callback: Callback,
        priority: int = DEFAULT_PRIORITY,
        *,
        owner: str | None = None,
    ) -> HookEntry:
        entry = HookEntry(priority, next(self._counter), callback, owner)
        entries = self._entries[event]
        entries.append(entry)
        entries.sort()
        return entry

    def remove(self, event: str, callback: Callback) -> bool:
        entries = self._entries.get(event)
        if not entries:
            return False
        kept = [entry for entry in entries if entry.callback != callback]
        removed = len(kept) != len(entries)
        self._entries[event] = kept
        return removed

    def remove_owner(self, owner: str) -> int:
        """Drop every callback registered on behalf of ``owner``."""

        removed = 0
        for event, entries in list(self._entries.items()):
            kept = [entry for entry in entries if entry.owner != owner]
            removed += len(entries) - len(kept)
            self._entries[event] = kept
        return removed

    def clear(self, event: str | None = None) -> None:
        if event is None:
            self._entries.clear()
        else:
            self._entries.pop(event, None)

    def has(self, event: str) -> bool:
        return bool(self._entries.get(event))

    def callbacks(self, event: str) -> list[Callback]:
        return [entry.callback for entry in self._entries.get(event, [])]

    async def dispatch(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Run every action registered for ``event`` in priority order."""

        for entry in list(self._entries.get(event, [])):
            result = entry.callback(*args, **kwargs)
            if inspect.isawaitable(result):
                await result

    async def apply(self, event: str, value: Any, *args: Any, **kwargs: Any) -> Any:
        """Thread ``value`` through every filter registered for ``event``."""

        for entry in list(self._entries.get(event, [])):
            result = entry.callback(value, *args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            value = result
        return value


__all__ = ["DEFAULT_PRIORITY", "HookEntry", "HookRegistry"]
