from __future__ import annotations

import logging
from typing import Awaitable, Callable, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _name(fn: Callable) -> str:
    return getattr(fn, "__name__", None) or type(fn).__name__


def first_non_empty(
    strategies: Iterable[Callable[..., T | None]],
    *args,
    empty: T | None = None,
) -> T | None:
    """
    Try each strategy in order with the same arguments; the first truthy
    result wins. A strategy that raises counts as "no result".
    """
    for strategy in strategies:
        try:
            result = strategy(*args)
        except Exception as e:
            logger.debug(f"strategy {_name(strategy)} failed: {e!r}")
            continue
        if result:
            return result
    return empty


async def first_non_empty_async(
    strategies: Iterable[Callable[..., Awaitable[T | None]]],
    *args,
    empty: T | None = None,
) -> T | None:
    """Async flavour of first_non_empty. Strategies are awaited one at a time."""
    for strategy in strategies:
        try:
            result = await strategy(*args)
        except Exception as e:
            logger.info(f"strategy {_name(strategy)} failed: {e!r}")
            continue
        if result:
            logger.debug(f"strategy {_name(strategy)} produced a result")
            return result
    return empty
