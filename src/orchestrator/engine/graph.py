"""Dependency graph construction and traversal.

This module turns a task list into a directed acyclic graph, rejecting
dangling references and cycles, and answers the scheduling questions the
execution engine asks: which tasks are ready, and which tasks sit downstream
of a failure.

All traversals follow declaration order so results are deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from orchestrator.engine.state import TaskStatus
from orchestrator.exceptions import CycleError, UnknownDependencyError

if TYPE_CHECKING:
    from orchestrator.config.schema import TaskDef

# DFS colors
_WHITE, _GREY, _BLACK = 0, 1, 2


class DependencyGraph:
    """Directed graph of tasks, edges pointing from a dependency to its dependent.

    Build instances with ``DependencyGraph.build`` (from task definitions) or
    ``DependencyGraph.from_edges`` (from plain ids); both validate the graph.

    Example:
        >>> graph = DependencyGraph.from_edges(
        ...     ["a", "b", "c"], {"b": ["a"], "c": ["b"]}
        ... )
        >>> graph.descendants("a")
        ['b', 'c']
        >>> graph.stages()
        [['a'], ['b'], ['c']]
    """

    def __init__(
        self, task_ids: Sequence[str], dependencies: Mapping[str, Sequence[str]]
    ) -> None:
        """Store the graph without validating it. Prefer the ``build`` constructors."""
        self._order: list[str] = list(task_ids)
        self._position = {task_id: i for i, task_id in enumerate(self._order)}
        self._deps: dict[str, list[str]] = {
            task_id: list(dict.fromkeys(dependencies.get(task_id, ())))
            for task_id in self._order
        }
        self._dependents: dict[str, list[str]] = {task_id: [] for task_id in self._order}
        for task_id in self._order:
            for dep in self._deps[task_id]:
                if dep in self._dependents:
                    self._dependents[dep].append(task_id)

    @classmethod
    def build(cls, tasks: Iterable[TaskDef]) -> DependencyGraph:
        """Build and validate a graph from task definitions.

        Args:
            tasks: Task definitions in declaration order.

        Returns:
            The validated graph.

        Raises:
            UnknownDependencyError: If a task depends on an undeclared id.
            CycleError: If the dependencies form a cycle.
        """
        tasks = list(tasks)
        return cls.from_edges(
            [t.id for t in tasks],
            {t.id: list(t.dependencies) for t in tasks},
        )

    @classmethod
    def from_edges(
        cls,
        task_ids: Sequence[str],
        dependencies: Mapping[str, Sequence[str]],
    ) -> DependencyGraph:
        """Build and validate a graph from ids and a dependency mapping.

        Args:
            task_ids: Task ids in declaration order.
            dependencies: Map of task id to the ids it depends on.

        Returns:
            The validated graph.

        Raises:
            UnknownDependencyError: If a task depends on an undeclared id.
            CycleError: If the dependencies form a cycle.
        """
        known = set(task_ids)
        for task_id in task_ids:
            for dep in dependencies.get(task_id, ()):
                if dep not in known:
                    raise UnknownDependencyError(task_id, dep)

        graph = cls(task_ids, dependencies)
        cycle = graph.find_cycle()
        if cycle:
            raise CycleError(cycle)
        return graph

    def find_cycle(self) -> list[str] | None:
        """Find one dependency cycle, if any.

        Depth-first traversal in declaration order, marking nodes grey while
        they are on the traversal stack. Reaching a grey node closes a cycle.
        Runs in O(tasks + edges) and uses an explicit stack, so deep chains do
        not hit the interpreter's recursion limit.

        Returns:
            Ids on the cycle in traversal order, or None if the graph is acyclic.
        """
        color = {task_id: _WHITE for task_id in self._order}

        for root in self._order:
            if color[root] != _WHITE:
                continue

            color[root] = _GREY
            path = [root]
            stack = [iter(self._deps[root])]

            while stack:
                node = path[-1]
                for dep in stack[-1]:
                    if color[dep] == _GREY:
                        return path[path.index(dep):]
                    if color[dep] == _WHITE:
                        color[dep] = _GREY
                        path.append(dep)
                        stack.append(iter(self._deps[dep]))
                        break
                else:
                    color[node] = _BLACK
                    path.pop()
                    stack.pop()

        return None

    @property
    def task_ids(self) -> list[str]:
        """Task ids in declaration order."""
        return list(self._order)

    def dependencies(self, task_id: str) -> list[str]:
        """Direct dependencies of a task, in declared order."""
        return list(self._deps[task_id])

    def dependents(self, task_id: str) -> list[str]:
        """Tasks that depend directly on ``task_id``, in declaration order."""
        return list(self._dependents[task_id])

    def descendants(self, task_id: str) -> list[str]:
        """Every task that transitively depends on ``task_id``.

        Returns:
            Descendant ids in declaration order, excluding ``task_id`` itself.
        """
        seen: set[str] = set()
        frontier = [task_id]
        while frontier:
            current = frontier.pop()
            for child in self._dependents[current]:
                if child not in seen:
                    seen.add(child)
                    frontier.append(child)
        return sorted(seen, key=self._position.__getitem__)

    def ancestors(self, task_id: str) -> list[str]:
        """Every task that ``task_id`` transitively depends on.

        Returns:
            Ancestor ids in declaration order, excluding ``task_id`` itself.
        """
        seen: set[str] = set()
        frontier = [task_id]
        while frontier:
            current = frontier.pop()
            for dep in self._deps[current]:
                if dep not in seen:
                    seen.add(dep)
                    frontier.append(dep)
        return sorted(seen, key=self._position.__getitem__)

    def roots(self) -> list[str]:
        """Tasks without dependencies, in declaration order."""
        return [task_id for task_id in self._order if not self._deps[task_id]]

    def ready_set(self, states: Mapping[str, Any]) -> list[str]:
        """Tasks that can be dispatched now.

        A task is ready when it is ``pending`` and every one of its
        dependencies is ``succeeded``.

        Args:
            states: Map of task id to a TaskStatus or an object with a
                ``status`` attribute (e.g. TaskRuntimeState).

        Returns:
            Ready task ids in declaration order.
        """

        def status_of(task_id: str) -> TaskStatus | None:
            value = states.get(task_id)
            return getattr(value, "status", value)

        return [
            task_id
            for task_id in self._order
            if status_of(task_id) == TaskStatus.PENDING
            and all(status_of(dep) == TaskStatus.SUCCEEDED for dep in self._deps[task_id])
        ]

    def stages(self) -> list[list[str]]:
        """Group tasks into levels that could run in parallel.

        Stage ``n`` holds the tasks whose dependencies all sit in earlier
        stages. Each stage lists ids in declaration order.
        """
        remaining = {task_id: len(self._deps[task_id]) for task_id in self._order}
        current = [task_id for task_id in self._order if remaining[task_id] == 0]
        stages: list[list[str]] = []

        while current:
            stages.append(current)
            released: set[str] = set()
            for task_id in current:
                for child in self._dependents[task_id]:
                    remaining[child] -= 1
                    if remaining[child] == 0:
                        released.add(child)
            current = sorted(released, key=self._position.__getitem__)

        return stages

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._deps

    def __len__(self) -> int:
        return len(self._order)
