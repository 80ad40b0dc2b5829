# inventory_edge/domain/ledger/tree.py
from typing import Callable, Hashable, Iterable, List, Optional, TypeVar

T = TypeVar("T")


def parents_first(
    rows: Iterable[T],
    id_of: Callable[[T], Optional[Hashable]],
    parent_of: Callable[[T], Optional[Hashable]],
) -> List[T]:
    """Order tree rows so that every parent precedes its children.

    Rows whose parent is not among ``rows`` count as roots. Rows caught in a
    cycle are appended last in their original order.
    """
    rows = list(rows)
    known = {id_of(r) for r in rows if id_of(r) is not None}
    children = {}
    roots = []
    for row in rows:
        parent = parent_of(row)
        if parent is None or parent not in known or parent == id_of(row):
            roots.append(row)
        else:
            children.setdefault(parent, []).append(row)

    ordered = []
    placed = set()
    queue = list(roots)
    while queue:
        row = queue.pop(0)
        if id(row) in placed:
            continue
        placed.add(id(row))
        ordered.append(row)
        queue.extend(children.get(id_of(row), []))

    ordered.extend(r for r in rows if id(r) not in placed)
    return ordered
