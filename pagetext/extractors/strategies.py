"""Ordered fallback chains: run strategies in order, first qualifying wins.

The locator tiers and every metadata field are expressed as a sequence of
:class:`Strategy` objects handed to :func:`first_qualifying`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, NamedTuple

logger = logging.getLogger(__name__)


class Strategy(NamedTuple):
    name: str
    run: Callable[[], Any]


class Attempt(NamedTuple):
    name: str
    value: Any
    qualified: bool


class ChainOutcome(NamedTuple):
    value: Any
    strategy: str | None
    attempts: list[Attempt]


def _present(value: object) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def first_qualifying(
    strategies: Iterable[Strategy],
    qualifies: Callable[[Any], bool] = _present,
    *,
    chain: str = "",
) -> ChainOutcome:
    """Run *strategies* in order and stop at the first qualifying value.

    A strategy returning ``None`` counts as an attempt with no value; the
    *qualifies* predicate is only consulted for non-``None`` values.  Every
    attempt is recorded in order for diagnostics.
    """
    attempts: list[Attempt] = []
    for strategy in strategies:
        value = strategy.run()
        ok = value is not None and qualifies(value)
        attempts.append(Attempt(strategy.name, value, ok))
        if ok:
            logger.debug("%s: %s qualified", chain or "chain", strategy.name)
            return ChainOutcome(value, strategy.name, attempts)
        logger.debug("%s: %s did not qualify", chain or "chain", strategy.name)
    return ChainOutcome(None, None, attempts)
