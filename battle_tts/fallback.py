# battle_tts/fallback.py

"""Ordered 'first success wins' evaluation of fallback steps."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FallbackStep(Generic[T]):
    name: str
    precondition: Callable[[], bool]
    attempt: Callable[[], Awaitable[T]]
    skip_reason: str = "precondition not met"


async def first_success(steps: Iterable[FallbackStep[T]], timeout: Optional[float] = None) -> Optional[T]:
    """
    Run steps one at a time and return the first result.

    A step whose precondition is false is skipped. A step that raises or
    times out is logged and treated the same as a skipped one. Returns None
    when no step produced a result.
    """
    for step in steps:
        if not step.precondition():
            logger.info(f"{step.name}: skipped ({step.skip_reason})")
            continue
        try:
            logger.info(f"{step.name}: attempting")
            if timeout:
                return await asyncio.wait_for(step.attempt(), timeout=timeout)
            return await step.attempt()
        except asyncio.TimeoutError:
            logger.warning(f"{step.name}: timed out after {timeout}s, falling back")
        except Exception as e:
            logger.warning(f"{step.name}: failed ({type(e).__name__}: {e}), falling back")
    return None
