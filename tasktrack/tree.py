# tasktrack/tree.py
"""WBS containment tree over flat task records (parentId / sortOrder / level).

All edits return new task lists; inputs are left untouched.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .model import NODE_INDEPENDENT, NODE_STORY, NODE_TASK, Issue, Task, TreeIndex

DIRECTION_UP = "up"
DIRECTION_DOWN = "down"

TreeLike = Union[TreeIndex, Iterable[Any]]


def _tid(t: Task) -> str:
    return str(t.get("id") or "").strip()


def _parent(t: Task) -> str:
    return str(t.get("parentId") or "").strip()


def _int(v: Any, default: int = 0) -> int:
    if v is None or isinstance(v, bool):
        return default
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return default


def build_tree(tasks: Iterable[Any]) -> TreeIndex:
    """Index tasks by id and group children under their parents.

    Siblings are ordered by sortOrder, then input order. A task whose parent
    is blank or unknown is a root; independent roots are kept apart.
    """
    by_id: Dict[str, Task] = {}
    order: List[str] = []
    for t in tasks or []:
        if not isinstance(t, dict):
            continue
        tid = _tid(t)
        if not tid or tid in by_id:
            continue
        by_id[tid] = t
        order.append(tid)

    pos = {tid: i for i, tid in enumerate(order)}

    def key(tid: str) -> Tuple[int, int]:
        return (_int(by_id[tid].get("sortOrder")), pos[tid])

    children: Dict[str, List[str]] = {}
    roots: List[str] = []
    independent: List[str] = []
    for tid in order:
        p = _parent(by_id[tid])
        if p and p in by_id and p != tid:
            children.setdefault(p, []).append(tid)
        elif by_id[tid].get("nodeType") == NODE_INDEPENDENT:
            independent.append(tid)
        else:
            roots.append(tid)

    for kids in children.values():
        kids.sort(key=key)
    roots.sort(key=key)
    independent.sort(key=key)

    return TreeIndex(by_id=by_id, children=children, roots=tuple(roots), independent=tuple(independent))


def _as_tree(tree: TreeLike) -> TreeIndex:
    return tree if isinstance(tree, TreeIndex) else build_tree(tree)


def would_create_cycle(moving_id: str, new_parent_id: Optional[str], tree: TreeLike) -> bool:
    """True when `new_parent_id` is `moving_id` itself or one of its descendants.

    Walks the parent chain up from `new_parent_id` with no step cap; each node
    has one parent, so the visited set bounds the walk.
    """
    moving = str(moving_id or "").strip()
    target = str(new_parent_id or "").strip()
    if not moving or not target:
        return False

    idx = _as_tree(tree)
    seen = set()
    cur = target
    while cur and cur not in seen:
        if cur == moving:
            return True
        seen.add(cur)
        cur = idx.parent_of(cur)
    return False


def parent_cycles(tasks: Iterable[Any]) -> List[str]:
    """Ids (input order) whose parentId chain leads back to themselves."""
    idx = _as_tree(tasks)
    return [tid for tid in idx.by_id if would_create_cycle(tid, idx.parent_of(tid), idx)]


def reorder(sibling_ids: Sequence[str], moved_id: str, direction: str) -> List[str]:
    """Swap `moved_id` with its neighbor; no-op at either end."""
    out = list(sibling_ids)
    if moved_id not in out:
        return out
    i = out.index(moved_id)
    if direction == DIRECTION_UP:
        j = i - 1
    elif direction == DIRECTION_DOWN:
        j = i + 1
    else:
        return out
    if j < 0 or j >= len(out):
        return out
    out[i], out[j] = out[j], out[i]
    return out


def descendants(task_id: str, tree: TreeLike) -> List[str]:
    """Every id below `task_id`, breadth-first."""
    idx = _as_tree(tree)
    start = str(task_id or "").strip()
    seen = {start}
    out: List[str] = []
    queue = deque(idx.children.get(start, []))
    while queue:
        cur = queue.popleft()
        if cur in seen:
            continue
        seen.add(cur)
        out.append(cur)
        queue.extend(idx.children.get(cur, []))
    return out


def compute_levels(tasks: Iterable[Any]) -> Dict[str, int]:
    """Depth of every task (roots are 0), from parent links alone."""
    idx = _as_tree(tasks)
    levels: Dict[str, int] = {}
    queue = deque((r, 0) for r in idx.roots + idx.independent)
    while queue:
        tid, lvl = queue.popleft()
        if tid in levels:
            continue
        levels[tid] = lvl
        queue.extend((c, lvl + 1) for c in idx.children.get(tid, []))
    # Nodes only reachable through a parent loop have no root; treat them as roots.
    for tid in idx.by_id:
        levels.setdefault(tid, 0)
    return levels


def next_child_defaults(parent: Task, *, child_count: Optional[int] = None) -> Dict[str, Any]:
    """Tree fields for a new child of `parent`."""
    level = _int(parent.get("level"))
    if child_count is None:
        kids = parent.get("children")
        child_count = len(kids) if isinstance(kids, (list, tuple)) else 0
    return {
        "parentId": _tid(parent),
        "level": level + 1,
        "nodeType": NODE_STORY if level == 0 else NODE_TASK,
        "sortOrder": child_count,
    }


def _with_levels(tasks: List[Task], ids: Iterable[str]) -> List[Task]:
    levels = compute_levels(tasks)
    wanted = set(ids)
    for t in tasks:
        tid = _tid(t)
        if tid in wanted:
            t["level"] = levels.get(tid, 0)
    return tasks


def move_task(
    tasks: Iterable[Any],
    moving_id: str,
    new_parent_id: Optional[str],
    new_sort_order: int = 0,
) -> Tuple[List[Task], List[Issue]]:
    """Re-parent a task. Returns (tasks, issues); tasks are unchanged copies on refusal."""
    out = [dict(t) for t in tasks or [] if isinstance(t, dict)]
    idx = build_tree(out)
    moving = str(moving_id or "").strip()
    parent = str(new_parent_id or "").strip()

    if moving not in idx.by_id:
        return out, [Issue("not_found", f"task not found: {moving}", ref=moving)]
    if parent and parent not in idx.by_id:
        return out, [Issue("parent_not_found", f"parent task not found: {parent}", ref=parent)]
    if would_create_cycle(moving, parent, idx):
        return out, [Issue("tree_cycle", f"cannot move {moving} under itself or its descendant {parent}", ref=moving)]

    t = idx.by_id[moving]
    t["parentId"] = parent
    t["sortOrder"] = _int(new_sort_order)
    if parent and t.get("nodeType") == NODE_INDEPENDENT:
        t["nodeType"] = next_child_defaults(idx.by_id[parent])["nodeType"]

    return _with_levels(out, [moving] + descendants(moving, build_tree(out))), []


def apply_order(tasks: Iterable[Any], parent_id: Optional[str], ordered_ids: Sequence[str]) -> List[Task]:
    """Set sortOrder 0..n-1 on the children of `parent_id` listed in `ordered_ids`.

    A row whose parent is missing sits among the roots, as in build_tree.
    """
    parent = str(parent_id or "").strip()
    rank = {tid: i for i, tid in enumerate(ordered_ids)}
    rows = [t for t in tasks or [] if isinstance(t, dict)]
    known = {_tid(t) for t in rows}

    def placed_under(t: Task) -> str:
        p = _parent(t)
        return p if p in known and p != _tid(t) else ""

    out: List[Task] = []
    for t in rows:
        c = dict(t)
        if placed_under(c) == parent and _tid(c) in rank:
            c["sortOrder"] = rank[_tid(c)]
        out.append(c)
    return out


def make_independent(tasks: Iterable[Any], task_id: str) -> Tuple[List[Task], List[Issue]]:
    """Detach a leaf task into the independent list."""
    out = [dict(t) for t in tasks or [] if isinstance(t, dict)]
    idx = build_tree(out)
    tid = str(task_id or "").strip()

    if tid not in idx.by_id:
        return out, [Issue("not_found", f"task not found: {tid}", ref=tid)]
    kids = idx.children.get(tid, [])
    if kids:
        return out, [Issue("has_children", f"task {tid} still has {len(kids)} child task(s)", ref=tid)]

    t = idx.by_id[tid]
    t["parentId"] = ""
    t["nodeType"] = NODE_INDEPENDENT
    t["level"] = 0
    return out, []


__all__ = [
    "DIRECTION_UP",
    "DIRECTION_DOWN",
    "build_tree",
    "would_create_cycle",
    "parent_cycles",
    "reorder",
    "descendants",
    "compute_levels",
    "next_child_defaults",
    "move_task",
    "apply_order",
    "make_independent",
]
