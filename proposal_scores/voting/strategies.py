from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence

# Strategies whose output can still change after the score API reports it
# final, for as long as the proposal is open (delegations can be overridden
# by the delegator voting directly).
OVERRIDE_STRATEGIES = frozenset(
    {
        "delegation",
        "delegation-with-cap",
        "delegation-with-overrides",
        "erc20-balance-of-delegation",
        "erc20-balance-of-with-delegation",
        "erc20-votes-with-override",
        "delegation-without-ens",
        "with-delegation",
        "strategy-override",
    }
)


def _walk(strategies: Sequence[Any]) -> Iterator[Mapping[str, Any]]:
    for strategy in strategies:
        if not isinstance(strategy, Mapping):
            continue
        yield strategy
        params = strategy.get("params")
        if isinstance(params, Mapping) and isinstance(params.get("strategies"), list):
            yield from _walk(params["strategies"])


def has_strategy_override(strategies: Sequence[Any]) -> bool:
    """True if any strategy, including nested ``params.strategies``, can override."""
    return any(
        str(strategy.get("name", "")).lower() in OVERRIDE_STRATEGIES
        for strategy in _walk(strategies)
    )
