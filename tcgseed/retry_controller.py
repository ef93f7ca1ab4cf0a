"""Bounded exponential backoff around remote calls."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

import aiohttp

from .errors import RemoteError
from .seed_config import SeedConfig

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY = 2.0
DEFAULT_MAX_DELAY = 30.0


def status_of(error: BaseException) -> Optional[int]:
    """
    Pull the HTTP status out of an exception, if it carries one
    :param error: Exception raised by a remote call
    :return: Status code or None
    """
    if isinstance(error, RemoteError):
        return error.status
    if isinstance(error, aiohttp.ClientResponseError):
        return error.status
    return None


class RetryController:
    """
    Stateless retry policy applied per call.

    Handles:
    - 404 responses, returned as None without retrying
    - 429 rate limits, backed off exponentially
    - Every other failure, backed off the same way

    Rate limits and generic failures share one max_retries budget.
    Nothing is kept between calls, so one controller may be shared freely.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_config(
        cls, sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ) -> "RetryController":
        """Build the controller from the [Retry] section"""
        config = SeedConfig()
        return cls(
            max_retries=config.get_int("Retry", "max_retries", DEFAULT_MAX_RETRIES),
            initial_delay=config.get_float(
                "Retry", "initial_delay", DEFAULT_INITIAL_DELAY
            ),
            max_delay=config.get_float("Retry", "max_delay", DEFAULT_MAX_DELAY),
            sleep=sleep,
        )

    def delay_for(self, attempt: int) -> float:
        """
        Wait before retry number attempt + 1
        :param attempt: Zero based attempt that just failed
        :return: Seconds to wait
        """
        return min(self.initial_delay * (2**attempt), self.max_delay)

    def backoff_delays(self) -> List[float]:
        """The full wait schedule a call could go through"""
        return [self.delay_for(attempt) for attempt in range(self.max_retries)]

    async def call(
        self, operation: Callable[[], Awaitable[T]], description: str = "remote call"
    ) -> Optional[T]:
        """
        Run operation until it succeeds, is not found, or retries run out
        :param operation: Zero argument coroutine factory, invoked once per attempt
        :param description: What is being called, for the logs
        :return: Operation result, or None when the resource does not exist
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as error:
                status = status_of(error)
                if status == 404:
                    LOGGER.debug(f"{description}: not found")
                    return None

                if attempt >= self.max_retries:
                    LOGGER.warning(
                        f"{description}: giving up after {attempt + 1} attempts: {error}"
                    )
                    raise

                delay = self.delay_for(attempt)
                if status == 429:
                    LOGGER.warning(f"{description}: rate limited, waiting {delay:.1f}s")
                else:
                    LOGGER.debug(
                        f"Retry {attempt + 1}/{self.max_retries} for {description} "
                        f"in {delay:.1f}s: {error}"
                    )
                await self._sleep(delay)
                attempt += 1
