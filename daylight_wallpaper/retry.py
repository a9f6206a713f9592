"""Bounded fetch-and-validate retries."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from daylight_wallpaper.exceptions import ProviderError


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRY_DELAY = 10


@dataclass(frozen=True)
class Attempt:
    """Outcome of one fetch-and-validate attempt."""

    number: int
    final: bool
    payload: Any = None
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def attempts(
    fetch: Callable[[], Any],
    parse: Callable[[Any], Any],
    initial: Any = None,
    max_attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep
) -> Iterator[Attempt]:
    """
    Fetch and validate until a response is accepted or attempts run out.

    The first attempt validates `initial` (e.g. a cached response) when one is
    given instead of fetching. Every later attempt waits `delay` seconds and
    refetches. The sleep happens only when the consumer asks for the next
    attempt, so it can react to a failed attempt before the wait.

    Args:
        fetch: Returns a raw response; may raise ProviderError
        parse: Turns a raw response into a validated value; may raise ProviderError
        initial: Response to validate on the first attempt
        max_attempts: Attempt budget (at least 1)
        delay: Seconds to wait before each refetch
        sleep: Sleep function

    Yields:
        Attempt results; the last one is either ok or final
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got: {max_attempts}")

    payload = initial
    for number in range(1, max_attempts + 1):
        final = number == max_attempts

        if number > 1:
            logger.debug(f"Trying again in {delay} seconds")
            sleep(delay)
            payload = None

        try:
            if payload is None:
                payload = fetch()
            value = parse(payload)
        except ProviderError as e:
            logger.debug(f"Validation try {number}/{max_attempts} failed: {e}")
            yield Attempt(number=number, final=final, payload=payload, error=str(e))
            continue

        logger.debug(f"Validation try {number}/{max_attempts} succeeded")
        yield Attempt(number=number, final=final, payload=payload, value=value)
        return


def should_show_fallback(attempt: Attempt, fallback_shown: bool) -> bool:
    """
    Decide whether to put up a guessed wallpaper after an attempt.

    A failed attempt that will be retried always refreshes the guess, so the
    background keeps up with the clock while waiting. After the last failed
    attempt a guess is shown only if none was shown before.

    Args:
        attempt: Attempt just made
        fallback_shown: Whether a guessed wallpaper was already applied
    """
    if attempt.ok:
        return False
    if not attempt.final:
        return True
    return not fallback_shown
