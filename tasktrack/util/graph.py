# tasktrack/util/graph.py
from __future__ import annotations

from collections import deque
from typing import Callable, Hashable, Iterable


def bounded_bfs(
    starts: Iterable[Hashable],
    neighbors: Callable[[Hashable], Iterable[Hashable]],
    target: Hashable,
    *,
    max_steps: int = 100,
) -> bool:
    """Breadth-first search from each start; True if `target` is reached.

    Each start gets its own visited set and at most `max_steps` expansions.
    A start equal to `target` counts as reached.
    """
    for start in starts:
        visited: set = set()
        queue = deque([start])
        steps = 0
        while queue and steps < max_steps:
            cur = queue.popleft()
            if cur == target:
                return True
            if cur in visited:
                continue
            visited.add(cur)
            queue.extend(neighbors(cur))
            steps += 1
    return False
