"""Dual calling convention for store coroutines.

Every public store coroutine can be awaited for its result or handed an
optional ``callback(err, result)``.  The callback is an observer attached at
the boundary: it is invoked exactly once per call, on success and on every
error path.

Functions
---------
- with_callback  — decorator adding the ``callback`` argument to a coroutine
"""
from __future__ import annotations

import functools
import inspect
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

Callback = Callable[[Optional[BaseException], Any], None]

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def with_callback(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[Optional[T]]]:
    """Wrap ``func`` so it accepts an optional trailing ``callback``.

    The callback may be given by keyword or as one extra positional
    argument after those ``func`` declares, e.g. ``store.get(sid, cb)``.

    Without a callback, the wrapped coroutine returns the result or raises.
    With a callback, the result is delivered as ``callback(None, result)``
    and returned; an exception is delivered as ``callback(exc, None)`` and
    the coroutine resolves to ``None`` instead of raising.
    """
    positional = sum(
        1
        for param in inspect.signature(func).parameters.values()
        if param.kind in _POSITIONAL_KINDS
    )

    @functools.wraps(func)
    async def wrapper(
        *args: Any, callback: Callback | None = None, **kwargs: Any
    ) -> Optional[T]:
        if len(args) == positional + 1:
            if callback is not None:
                raise TypeError(f"{func.__qualname__}() got multiple callbacks")
            *args, callback = args
        if callback is not None and not callable(callback):
            raise TypeError(f"callback must be callable, got {callback!r}")
        if callback is None:
            return await func(*args, **kwargs)
        try:
            result = await func(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            callback(exc, None)
            return None
        callback(None, result)
        return result

    return wrapper


__all__ = ["Callback", "with_callback"]
