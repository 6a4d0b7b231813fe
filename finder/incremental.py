#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Incremental computation engine.

A dependency-tracked graph runtime. Variables are leaves set from outside,
derived nodes combine upstream values with pure functions, and observers
are told when the value of a node they watch actually changed.

Every node carries two stamps taken from the engine's stabilization
counter:
- changed_at: the stabilization in which its value last changed
- recomputed_at: the stabilization in which it was last recomputed

stabilize() applies pending variable sets, then pulls every observed node
up to date, dependencies first. A derived node is recomputed only when one
of its inputs has changed_at > recomputed_at; its own changed_at advances
only if the new value differs from the cached one (the node's cutoff).
Nodes nobody observes are never computed.

Usage:
    engine = Incremental()
    x = engine.var(1)
    doubled = engine.map(x, lambda v: v * 2)
    observer = engine.observe(doubled)
    engine.stabilize()
    observer.value  # 2
    x.set(5)
    engine.stabilize()
    observer.value  # 10
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

NEVER = -1

# Phases of the stabilization walk
_VISIT, _BIND_INNER, _FINISH = range(3)


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


_UNSET: Any = _Unset()


# =============================================================================
# Errors
# =============================================================================


class IncrementalError(Exception):
    """Invariant violation inside the engine. Not recoverable at runtime."""


class NotStabilizedError(IncrementalError):
    """A value was read before any stabilization computed it."""


class ObserverDisposedError(IncrementalError):
    """An observer was used after unobserve()."""


class CycleError(IncrementalError):
    """A node would (transitively) depend on itself."""


class ForeignNodeError(IncrementalError):
    """A node from a different engine was passed in."""


# =============================================================================
# Updates
# =============================================================================


class UpdateKind(str, Enum):
    """Why an observer callback fired."""
    INITIALIZED = "initialized"
    CHANGED = "changed"


@dataclass(frozen=True)
class Update:
    """Payload passed to observer callbacks."""

    kind: UpdateKind
    old: Any
    new: Any


def default_cutoff(old: Any, new: Any) -> bool:
    """Return True when new should be treated as equal to old."""
    return old is new or old == new


# =============================================================================
# Nodes
# =============================================================================


class Node:
    """
    A derived node: a pure function of its upstream nodes.

    Created through Incremental.map / map2 / map3 / map_n, never directly.
    Upstream nodes must already exist when a node is built, so the graph
    cannot contain a cycle through map nodes.
    """

    def __init__(
        self,
        engine: "Incremental",
        deps: Sequence["Node"],
        compute: Optional[Callable[..., Any]],
        name: Optional[str] = None,
    ) -> None:
        self._engine = engine
        self._deps: Tuple["Node", ...] = tuple(deps)
        self._compute = compute
        self.name = name
        self._value: Any = _UNSET
        self._cutoff: Callable[[Any, Any], bool] = default_cutoff
        self._checked_at = NEVER
        self.changed_at = NEVER
        self.recomputed_at = NEVER
        self.recompute_count = 0

    def __repr__(self) -> str:
        label = self.name or type(self).__name__
        return f"<{label} changed_at={self.changed_at} recomputed_at={self.recomputed_at}>"

    @property
    def engine(self) -> "Incremental":
        return self._engine

    @property
    def dependencies(self) -> Tuple["Node", ...]:
        return self._deps

    @property
    def is_computed(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> Any:
        """Value as of the last stabilization that computed this node."""
        if self._value is _UNSET:
            raise NotStabilizedError(f"{self!r} has not been computed by a stabilization")
        return self._value

    def _is_stale(self) -> bool:
        if self.recomputed_at == NEVER:
            return True
        return any(dep.changed_at > self.recomputed_at for dep in self.dependencies)

    def _recompute(self, stamp: int) -> None:
        new = self._compute(*[dep._value for dep in self._deps])
        self.recompute_count += 1
        self.recomputed_at = stamp
        self._accept(new, stamp)

    def _accept(self, new: Any, stamp: int) -> None:
        if self._value is _UNSET or not self._cutoff(self._value, new):
            self._value = new
            self.changed_at = stamp


class Var(Node):
    """
    A variable: a leaf whose value is set from outside the graph.

    set() takes effect at the next stabilization. Reading .value returns
    the most recently set value straight away; derived nodes only see it
    once stabilize() has run.
    """

    def __init__(self, engine: "Incremental", initial: Any, name: Optional[str] = None) -> None:
        super().__init__(engine, (), None, name=name)
        self._value = initial
        self._latest = initial
        self.changed_at = engine.stabilization_num
        self.recomputed_at = engine.stabilization_num

    @property
    def value(self) -> Any:
        return self._latest

    @property
    def stable_value(self) -> Any:
        """Value as seen by derived nodes after the last stabilization."""
        return self._value

    def set(self, value: Any) -> None:
        self._latest = value
        self._engine._schedule(self, value)

    def _is_stale(self) -> bool:
        return False

    def _apply(self, value: Any, stamp: int) -> None:
        self._accept(value, stamp)


class BindNode(Node):
    """
    A node whose inner subgraph is chosen by a function of another node.

    Each time the left-hand node changes, f is called again and the
    previous inner subgraph is dropped. Nothing inside the old subgraph is
    reused, so anything built by f is recomputed from scratch.
    """

    def __init__(
        self,
        engine: "Incremental",
        lhs: Node,
        f: Callable[[Any], Node],
        name: Optional[str] = None,
    ) -> None:
        super().__init__(engine, (lhs,), None, name=name)
        self._lhs = lhs
        self._f = f
        self._inner: Optional[Node] = None
        self._lhs_seen = NEVER
        self._switched = False
        self.rebuild_count = 0

    @property
    def lhs(self) -> Node:
        return self._lhs

    @property
    def inner(self) -> Optional[Node]:
        """The subgraph currently bound, or None before the first stabilization."""
        return self._inner

    @property
    def dependencies(self) -> Tuple[Node, ...]:
        if self._inner is None:
            return (self._lhs,)
        return (self._lhs, self._inner)

    def _needs_rebuild(self) -> bool:
        return self._inner is None or self._lhs.changed_at > self._lhs_seen

    def _rebuild(self) -> None:
        inner = self._f(self._lhs._value)
        self._engine._check_owned(inner)
        if self._engine._reaches(inner, self):
            raise CycleError(f"bind {self!r} returned a node that depends on the bind itself")
        self._inner = inner
        self._lhs_seen = self._lhs.changed_at
        self._switched = True
        self.rebuild_count += 1

    def _is_stale(self) -> bool:
        return self._switched or super()._is_stale()

    def _recompute(self, stamp: int) -> None:
        self._switched = False
        self.recompute_count += 1
        self.recomputed_at = stamp
        self._accept(self._inner._value, stamp)


# =============================================================================
# Observers
# =============================================================================


class Observer:
    """
    A registered consumer of a node's value.

    Keeps the observed node (and everything it depends on) computed by
    stabilize(), and fires its callbacks only when the value changed.
    """

    def __init__(self, engine: "Incremental", node: Node) -> None:
        self._engine = engine
        self._node = node
        self._value: Any = _UNSET
        self._seen_at = NEVER
        self._disposed = False
        self._callbacks: List[Callable[[Update], None]] = []

    @property
    def node(self) -> Node:
        return self._node

    @property
    def is_initialized(self) -> bool:
        return self._value is not _UNSET

    @property
    def value(self) -> Any:
        if self._disposed:
            raise ObserverDisposedError("observer was disposed with unobserve()")
        if self._value is _UNSET:
            raise NotStabilizedError("observer read before the first stabilization")
        return self._value

    def on_update(self, callback: Callable[[Update], None]) -> Callable[[Update], None]:
        """Register a callback; usable as a decorator."""
        self._callbacks.append(callback)
        return callback

    def unobserve(self) -> None:
        if not self._disposed:
            self._disposed = True
            self._engine._observers.remove(self)

    def _notify(self) -> None:
        # Any change since the last delivery, including one made by a
        # stabilization that raised before notifying
        node = self._node
        if node._value is _UNSET:
            return
        if self._value is _UNSET:
            kind = UpdateKind.INITIALIZED
        elif node.changed_at > self._seen_at:
            kind = UpdateKind.CHANGED
        else:
            return
        self._seen_at = node.changed_at
        old = None if self._value is _UNSET else self._value
        self._value = self._node._value
        update = Update(kind, old, self._value)
        for callback in list(self._callbacks):
            callback(update)


# =============================================================================
# Engine
# =============================================================================


class Incremental:
    """
    One dependency graph and its stabilization state.

    Not thread-safe: build, set, and stabilize from a single thread.
    """

    def __init__(self, now: Optional[datetime] = None, logger: Any = None) -> None:
        self._stamp = 0
        self._pending: Dict[Var, Any] = {}
        self._observers: List[Observer] = []
        self._stabilizing = False
        self._in_progress: set = set()
        self._logger = logger
        self.node_count = 0
        self._clock = self.var(now or datetime.now(timezone.utc), name="clock")

    @property
    def stabilization_num(self) -> int:
        return self._stamp

    @property
    def is_stabilizing(self) -> bool:
        return self._stabilizing

    @property
    def now(self) -> Var:
        """Clock node; moved forward with advance_clock()."""
        return self._clock

    # -------------------------------------------------------------------------
    # Graph construction
    # -------------------------------------------------------------------------

    def var(self, initial: Any, name: Optional[str] = None) -> Var:
        node = Var(self, initial, name=name)
        self.node_count += 1
        return node

    def const(self, value: Any, name: Optional[str] = None) -> Var:
        return self.var(value, name=name)

    def map(self, node: Node, f: Callable[[Any], Any], name: Optional[str] = None) -> Node:
        return self.map_n((node,), f, name=name)

    def map2(self, a: Node, b: Node, f: Callable[[Any, Any], Any], name: Optional[str] = None) -> Node:
        return self.map_n((a, b), f, name=name)

    def map3(
        self,
        a: Node,
        b: Node,
        c: Node,
        f: Callable[[Any, Any, Any], Any],
        name: Optional[str] = None,
    ) -> Node:
        return self.map_n((a, b, c), f, name=name)

    def map_n(self, nodes: Sequence[Node], f: Callable[..., Any], name: Optional[str] = None) -> Node:
        """Node computing f(*values) from any number of upstream nodes."""
        for node in nodes:
            self._check_owned(node)
        derived = Node(self, nodes, f, name=name)
        self.node_count += 1
        return derived

    def bind(self, node: Node, f: Callable[[Any], Node], name: Optional[str] = None) -> BindNode:
        """
        Node whose structure depends on the value of another node.

        f(value) must return a node of this engine. It is called again each
        time `node` changes and the subgraph it returned last time is thrown
        away. That makes every change of `node` as expensive as building
        and computing the inner subgraph from nothing: keep fast-changing
        inputs out of the left-hand side and read them through map instead.
        """
        self._check_owned(node)
        derived = BindNode(self, node, f, name=name)
        self.node_count += 1
        return derived

    def set_cutoff(self, node: Node, cutoff: Callable[[Any, Any], bool]) -> None:
        """Override how a node decides that a new value equals the old one."""
        self._check_owned(node)
        node._cutoff = cutoff

    def observe(self, node: Node) -> Observer:
        self._check_owned(node)
        observer = Observer(self, node)
        self._observers.append(observer)
        return observer

    # -------------------------------------------------------------------------
    # Variables and clock
    # -------------------------------------------------------------------------

    def set(self, var: Var, value: Any) -> None:
        self._check_owned(var)
        var.set(value)

    def value_of(self, handle: Any) -> Any:
        """Latest set value of a Var, or the current value of an Observer."""
        if isinstance(handle, Observer):
            return handle.value
        self._check_owned(handle)
        return handle.value

    def advance_clock(self, to_time: datetime) -> bool:
        """
        Move the clock node forward for the next stabilization.

        Returns False (and leaves the clock alone) when to_time is earlier
        than the current clock.
        """
        if to_time < self._clock.value:
            return False
        self._clock.set(to_time)
        return True

    def _schedule(self, var: Var, value: Any) -> None:
        self._pending[var] = value

    # -------------------------------------------------------------------------
    # Stabilization
    # -------------------------------------------------------------------------

    def stabilize(self) -> int:
        """
        Bring every observed node up to date and notify changed observers.

        Returns the stamp of this stabilization.
        """
        if self._stabilizing:
            raise IncrementalError("stabilize() called during stabilization")
        self._stabilizing = True
        try:
            self._stamp += 1
            stamp = self._stamp
            pending, self._pending = self._pending, {}
            for var, value in pending.items():
                var._apply(value, stamp)
            observers = list(self._observers)
            for observer in observers:
                self._bring_up_to_date(observer.node, stamp)
            for observer in observers:
                if not observer._disposed:
                    observer._notify()
        finally:
            self._in_progress.clear()
            self._stabilizing = False
        return stamp

    def _bring_up_to_date(self, root: Node, stamp: int) -> None:
        """
        Pull root and everything it depends on up to date, dependencies first.

        Iterative depth-first walk, so graph depth is not bounded by the
        interpreter recursion limit. Each stack entry is (node, phase):
        _VISIT schedules the node's inputs, _BIND_INNER attaches a bind's
        inner node once its left-hand side is current, _FINISH recomputes
        the node if stale.
        """
        stack: List[Tuple[Node, int]] = [(root, _VISIT)]
        while stack:
            node, phase = stack.pop()
            if phase == _VISIT:
                if node._checked_at == stamp:
                    continue
                if node in self._in_progress:
                    raise CycleError(f"{node!r} depends on itself")
                self._in_progress.add(node)
                if isinstance(node, BindNode):
                    stack.append((node, _BIND_INNER))
                    stack.append((node.lhs, _VISIT))
                else:
                    stack.append((node, _FINISH))
                    stack.extend((dep, _VISIT) for dep in reversed(node.dependencies))
            elif phase == _BIND_INNER:
                if node._needs_rebuild():
                    node._rebuild()
                stack.append((node, _FINISH))
                stack.append((node.inner, _VISIT))
            else:
                if node._is_stale():
                    self._recompute(node, stamp)
                node._checked_at = stamp
                self._in_progress.discard(node)

    def _recompute(self, node: Node, stamp: int) -> None:
        if self._logger is None or self._logger.level < 3:
            node._recompute(stamp)
            return
        start = time.perf_counter()
        node._recompute(stamp)
        self._logger.recompute(
            node.name or type(node).__name__,
            (time.perf_counter() - start) * 1000,
            changed=node.changed_at == stamp,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _check_owned(self, node: Any) -> None:
        if not isinstance(node, Node):
            raise TypeError(f"expected an incremental node, got {type(node).__name__}")
        if node._engine is not self:
            raise ForeignNodeError(f"{node!r} belongs to a different engine")

    def _reaches(self, start: Node, target: Node) -> bool:
        """True when target is start or one of its transitive dependencies."""
        stack = [start]
        seen = set()
        while stack:
            node = stack.pop()
            if node is target:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(node.dependencies)
        return False
