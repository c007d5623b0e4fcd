"""
Effects - Deferred side effects returned alongside reducer state.

A reducer stays a pure function of (state, action). When a transition needs
network work (fetch status, advance track, ...) it returns the new state
combined with one or more Effect values. Nothing runs until the runtime
picks the effects up after the reducer returns.

    return combine(new_state, [effect(load_player, player_id, True)])

A reducer may also return a bare state, which means "no effects".
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable


class EffectValidationError(ValueError):
    """Programmer error: malformed effects or an invalid action."""


@dataclass(frozen=True)
class Effect:
    """
    A deferred computation: factory plus the arguments to call it with.

    The factory returns an action, an awaitable resolving to an action,
    or IGNORE_ACTION.
    """
    factory: Callable[..., Any]
    args: tuple[Any, ...] = ()

    def __repr__(self) -> str:
        name = getattr(self.factory, "__name__", repr(self.factory))
        return f"Effect({name}, {self.args!r})"


class EffectfulValue:
    """State paired with the effects produced while computing it."""

    __slots__ = ("state", "effects")

    def __init__(self, state: Any, effects: list[Effect]):
        self.state = state
        self.effects = effects

    def __iter__(self):
        yield self.state
        yield self.effects

    def __repr__(self) -> str:
        return f"EffectfulValue({self.state!r}, {self.effects!r})"


def effect(factory: Callable[..., Any], *args: Any) -> Effect:
    """Create an effect that will call factory(*args)."""
    return Effect(factory=factory, args=tuple(args))


def combine(state: Any, effects: list[Effect] | tuple[Effect, ...] | None = None) -> EffectfulValue:
    """Pair state with effects."""
    _validate(effects)
    return EffectfulValue(state, list(effects or ()))


def is_effectful(value: Any) -> bool:
    return isinstance(value, EffectfulValue)


def split(value: Any) -> tuple[Any, list[Effect]]:
    """Return (state, effects); a bare value has no effects."""
    if isinstance(value, EffectfulValue):
        return value.state, value.effects
    return value, []


def get_state(value: Any) -> Any:
    return split(value)[0]


def get_effects(value: Any) -> list[Effect]:
    return split(value)[1]


def _validate(effects: Any) -> None:
    if effects is None:
        return
    if not isinstance(effects, (list, tuple)):
        raise EffectValidationError(f"bad effects sequence: {effects!r}")
    for item in effects:
        if not isinstance(item, Effect):
            raise EffectValidationError(f"not an effect: {item!r}")
