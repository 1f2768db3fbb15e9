"""
Task graph with Tarjan's algorithm for cycle detection.

Steps are added once and referenced by the handles :meth:`TaskGraph.add`
returns. Names are kept unique so the CLI can select steps, but the
synthesizer never looks steps up by name.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Set, TypeVar, Union

from ..faults import DuplicateStepError, StepCycleError, StepNotFoundError
from .steps import ArchiveStep, Step, StepKind

S = TypeVar("S", bound=Step)


class TaskGraph:
    """
    Ordered set of steps plus their dependency edges.

    Uses Tarjan's strongly connected components algorithm for O(V+E)
    cycle detection and Kahn's algorithm for execution order.
    """

    def __init__(self) -> None:
        self._steps: Dict[str, Step] = {}

    # ── Building ─────────────────────────────────────────────────────

    def add(self, step: S) -> S:
        """
        Add *step* and return it as the handle for later wiring.

        Raises:
            DuplicateStepError: If a step with the same name exists.
        """
        if step.name in self._steps:
            raise DuplicateStepError(step.name)
        self._steps[step.name] = step
        return step

    def remove(self, *steps: Step) -> None:
        """Drop steps and every edge pointing at them."""
        doomed = {s.name for s in steps}
        for name in doomed:
            self._steps.pop(name, None)
        for step in self._steps.values():
            step._depends_on = [d for d in step._depends_on if d.name not in doomed]

    # ── Lookup ───────────────────────────────────────────────────────

    def get(self, name: str) -> Step:
        try:
            return self._steps[name]
        except KeyError:
            raise StepNotFoundError(name, available=sorted(self._steps)) from None

    def of_kind(self, *kinds: StepKind) -> List[Step]:
        return [s for s in self._steps.values() if s.kind in kinds]

    def archives(self) -> List[ArchiveStep]:
        return [s for s in self._steps.values() if s.is_archive]  # type: ignore[misc]

    def names(self) -> List[str]:
        return list(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(list(self._steps.values()))

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, Step):
            return self._steps.get(item.name) is item
        return item in self._steps

    # ── Analysis ─────────────────────────────────────────────────────

    def _adjacency(self) -> Dict[str, List[str]]:
        adjacency: Dict[str, List[str]] = {}
        for name, step in self._steps.items():
            adjacency[name] = [d.name for d in step.depends_on]
            for dep in step.depends_on:
                adjacency.setdefault(dep.name, [d.name for d in dep.depends_on])
        return adjacency

    def find_cycle(self) -> Optional[List[str]]:
        """
        Find a cycle using Tarjan's algorithm.

        Returns:
            Step names forming a cycle, or None if the graph is acyclic
        """
        adjacency = self._adjacency()
        index_counter = [0]
        stack: List[str] = []
        lowlinks: Dict[str, int] = {}
        index: Dict[str, int] = {}
        on_stack: Set[str] = set()
        cycles: List[List[str]] = []

        def strongconnect(node: str) -> None:
            index[node] = index_counter[0]
            lowlinks[node] = index_counter[0]
            index_counter[0] += 1
            stack.append(node)
            on_stack.add(node)

            for dep in adjacency.get(node, []):
                if dep not in index:
                    strongconnect(dep)
                    lowlinks[node] = min(lowlinks[node], lowlinks[dep])
                elif dep in on_stack:
                    lowlinks[node] = min(lowlinks[node], index[dep])

            if lowlinks[node] == index[node]:
                component: List[str] = []
                while True:
                    w = stack.pop()
                    on_stack.remove(w)
                    component.append(w)
                    if w == node:
                        break
                if len(component) > 1:
                    cycles.append(list(reversed(component)))

        for node in adjacency:
            if node not in index:
                strongconnect(node)

        return cycles[0] if cycles else None

    def closure(self, targets: Iterable[Step]) -> Set[str]:
        """Names of *targets* and everything they transitively depend on."""
        visited: Set[str] = set()

        def visit(step: Step) -> None:
            if step.name in visited:
                return
            visited.add(step.name)
            for dep in step.depends_on:
                visit(dep)

        for target in targets:
            visit(target)
        return visited

    def execution_order(self, targets: Optional[Iterable[Union[Step, str]]] = None) -> List[Step]:
        """
        Steps in dependency order (dependencies first).

        Args:
            targets: Steps or names to build; all steps when None

        Raises:
            StepCycleError: If a cycle is detected
        """
        cycle = self.find_cycle()
        if cycle:
            raise StepCycleError(cycle)

        steps: Dict[str, Step] = dict(self._steps)
        for step in list(steps.values()):
            for dep in step.depends_on:
                steps.setdefault(dep.name, dep)

        if targets is None:
            wanted = set(steps)
        else:
            resolved = [self.get(t) if isinstance(t, str) else t for t in targets]
            wanted = self.closure(resolved)

        # Kahn's algorithm; ties broken by insertion order for stable output
        remaining = {name: len(steps[name].depends_on) for name in steps if name in wanted}
        dependents: Dict[str, List[str]] = {name: [] for name in remaining}
        for name in remaining:
            for dep in steps[name].depends_on:
                dependents[dep.name].append(name)

        queue = [name for name in steps if name in remaining and remaining[name] == 0]
        result: List[Step] = []
        while queue:
            name = queue.pop(0)
            result.append(steps[name])
            for dependent in dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    queue.append(dependent)
        return result

    # ── Export ───────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, List[str]]:
        """Adjacency dict: step name -> names of its dependencies."""
        return {name: [d.name for d in step.depends_on] for name, step in self._steps.items()}

    def to_dot(self) -> str:
        """Export graph as DOT for visualization."""
        lines = ["digraph steps {"]
        lines.append("  rankdir=LR;")
        lines.append("  node [shape=box, style=rounded];")
        for name, step in self._steps.items():
            lines.append(f'  "{name}" [tooltip="{step.kind.value}"];')
        for name, step in self._steps.items():
            for dep in step.depends_on:
                lines.append(f'  "{name}" -> "{dep.name}";')
        lines.append("}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"TaskGraph({len(self._steps)} steps)"
