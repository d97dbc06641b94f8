# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
"""Retrying of sink writes.

A sink whose writes can fail transiently may raise `Retry` to ask for another
try. None of the bundled sinks does. The publishing loop wraps each chunk
write with `retry`, which sleeps according to a schedule before trying again.
"""

import logging
import time
from functools import wraps
from itertools import count, islice
from typing import Callable, Generator, Iterable, Iterator, TypeVar, Union

from typing_extensions import ParamSpec

logger = logging.getLogger(__name__)


class Retry(Exception):
    """Raised by a sink write to ask for another try."""


class OutOfRetries(Exception):
    """The write still asked for a retry after the schedule ran out."""


TOut_co = TypeVar("TOut_co", covariant=True)
P = ParamSpec("P")

Schedule = Callable[[], Iterable[Union[int, float]]]


def exponential_backoff(
    *, initial: int = 10, base: int = 2
) -> Generator[int, None, None]:
    """Unbounded delays `initial * base**n`.

    >>> list(islice(exponential_backoff(), 3))
    [10, 20, 40]
    """
    for n in count():
        yield initial * base**n


def _default_schedule() -> Iterator[int]:
    return islice(exponential_backoff(), 2)


def retry(
    *,
    retry_schedule_factory: Schedule = _default_schedule,
    sleep: Callable[[Union[float, int]], None] = time.sleep,
) -> Callable[[Callable[P, TOut_co]], Callable[P, TOut_co]]:
    """Call the decorated function again, with the same arguments, for as long
    as it raises `Retry` and the schedule has delays left.

    `retry_schedule_factory` is called once per call of the decorated function;
    a schedule of n delays allows up to n + 1 tries. Exceptions other than
    `Retry` are not retried.

    Raises:
        OutOfRetries: If the last try raised `Retry`.
    """

    def decorator(f: Callable[P, TOut_co]) -> Callable[P, TOut_co]:
        @wraps(f)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> TOut_co:
            delays = iter(retry_schedule_factory())
            tries = 0
            while True:
                tries += 1
                try:
                    return f(*args, **kwargs)
                except Retry as e:
                    delay = next(delays, None)
                    if delay is None:
                        raise OutOfRetries(f"gave up after {tries} tries") from e
                    logger.debug(
                        f"try {tries} asked for a retry, sleeping {delay}s",
                        exc_info=True,
                    )
                    sleep(delay)

        return wrapper

    return decorator
