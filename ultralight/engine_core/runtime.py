"""
Effect Runtime - Store plus the dispatch loop that runs effects.

The Store is a plain reducer container: dispatch runs the reducer and
notifies subscribers. EffectRuntime wraps the store's reducer so that
reducers may return EffectfulValue; the effects are collected, the plain
state is stored, and after each dispatch the collected effects are run.

Every effect runs in its own asyncio task and its resulting action is
dispatched as soon as that task finishes. There is no joint wait over
a batch: "advance to next track now" must not wait for a slow status poll
scheduled by the same action.
"""

from __future__ import annotations
from typing import Any, Callable
import asyncio
import inspect
import logging

from .action import Action, ActionType, IGNORE_ACTION
from .effects import Effect, EffectValidationError, split

logger = logging.getLogger(__name__)

Reducer = Callable[[Any, Action], Any]
Listener = Callable[[], None]

INIT_ORIGIN = "@@Effects/INIT"


class Store:
    """
    Minimal reducer store.

    Reducers must not dispatch; subscribers may. after_reduce runs between
    the reducer and the subscribers.
    """

    def __init__(
        self,
        reducer: Reducer,
        initial_state: Any,
        known_actions: frozenset[str] | None = None,
        after_reduce: Callable[[Action], None] | None = None,
    ):
        self._reducer = reducer
        self._state = initial_state
        self._listeners: list[Listener] = []
        self._known_actions = known_actions
        self._reducing = False
        self._after_reduce = after_reduce

    def get_state(self) -> Any:
        return self._state

    def dispatch(self, action: Action) -> Action:
        if not isinstance(action, Action):
            raise EffectValidationError(f"not an action: {action!r}")
        if action is IGNORE_ACTION or action.action_type is ActionType.IGNORE:
            raise EffectValidationError("IGNORE_ACTION cannot be dispatched")
        if self._known_actions is not None and action.action_type.value not in self._known_actions:
            raise EffectValidationError(f"unregistered action kind: {action.action_type.value}")
        if self._reducing:
            raise EffectValidationError("reducers may not dispatch actions")
        self._reducing = True
        try:
            self._state = self._reducer(self._state, action)
        finally:
            self._reducing = False
        if self._after_reduce is not None:
            self._after_reduce(action)
        for listener in list(self._listeners):
            listener()
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace_reducer(self, reducer: Reducer) -> None:
        self._reducer = reducer


class EffectRuntime:
    """
    Store decorator that executes the effects reducers emit.

    Usage:
        runtime = EffectRuntime(reducer, combine(initial_state, initial_effects))
        runtime.dispatch(Action.selection_changed({1, 2}))
        state = runtime.get_state()   # always a plain state

    Must be created and dispatched to from the event loop's thread.
    Initial effects run immediately.
    """

    def __init__(
        self,
        reducer: Reducer,
        initial: Any,
        known_actions: frozenset[str] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        store_factory: Callable[..., Store] = Store,
    ):
        initial_state, initial_effects = split(initial)
        self._pending: list[Effect] = []
        self._tasks: set[asyncio.Task] = set()
        self._loop = loop
        self._store = store_factory(
            self._wrap(reducer), initial_state, known_actions, after_reduce=self._take_effects
        )
        for item in initial_effects:
            self._run_effect(INIT_ORIGIN, item)

    # =========================================================================
    # Store interface
    # =========================================================================

    def get_state(self) -> Any:
        return self._store.get_state()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._store.subscribe(listener)

    def dispatch(self, action: Action) -> Action:
        """
        Run the reducer, then run every effect it produced.

        The pending queue is taken and replaced in one step before any
        subscriber runs, so effects produced by a reentrant dispatch from a
        subscriber land in a fresh queue owned by that dispatch.
        """
        self._store.dispatch(action)
        return action

    def replace_reducer(self, reducer: Reducer) -> None:
        self._store.replace_reducer(self._wrap(reducer))

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def join(self) -> None:
        """Wait until no effect is running, including effects they trigger."""
        while self._tasks:
            await asyncio.wait(list(self._tasks))

    async def shutdown(self) -> None:
        """Cancel every running effect and wait for the tasks to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.wait(tasks)

    # =========================================================================
    # Internals
    # =========================================================================

    def _wrap(self, reducer: Reducer) -> Reducer:
        def effects_reducer(state: Any, action: Action) -> Any:
            new_state, effects = split(reducer(state, action))
            if effects:
                self._pending.extend(effects)
            return new_state

        return effects_reducer

    def _take_effects(self, action: Action) -> None:
        effects, self._pending = self._pending, []
        for item in effects:
            self._run_effect(str(action), item)

    def _run_effect(self, origin: str, item: Effect) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._resolve(origin, item))
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._effect_done(origin, done))

    async def _resolve(self, origin: str, item: Effect) -> None:
        try:
            result = item.factory(*item.args)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("'%s' produced rejected effect %r: %s", origin, item, exc)
            raise
        logger.debug("%s -> %s", origin, result)
        if result is IGNORE_ACTION:
            return
        self.dispatch(result)

    def _effect_done(self, origin: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            task.get_loop().call_exception_handler({
                "message": f"unhandled effect failure (origin: {origin})",
                "exception": exc,
                "task": task,
            })


class Timer:
    """
    A single cancellable delayed action.

    after() supersedes the previous pending wait; the superseded wait
    resolves to IGNORE_ACTION instead of calling its factory.

        timer = Timer()
        action = await timer.after(5, lambda: Action.advance_to_next_track(pid))
    """

    def __init__(self, sleep: Callable[[float], Any] = asyncio.sleep):
        self._sleep = sleep
        self._waiting: asyncio.Task | None = None
        self.wait: float | None = None

    def is_active(self) -> bool:
        return self._waiting is not None and not self._waiting.done()

    async def after(self, seconds: float, factory: Callable[[], Any]) -> Any:
        self.clear()
        self.wait = seconds
        waiting = asyncio.ensure_future(self._sleep(seconds))
        self._waiting = waiting
        try:
            await waiting
        except asyncio.CancelledError:
            if waiting.cancelled() and not _current_task_cancelling():
                return IGNORE_ACTION
            raise
        finally:
            if self._waiting is waiting:
                self._waiting = None
        result = factory()
        if inspect.isawaitable(result):
            result = await result
        return result

    def clear(self) -> None:
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        self._waiting = None


def _current_task_cancelling() -> bool:
    task = asyncio.current_task()
    return bool(task is not None and task.cancelling())
