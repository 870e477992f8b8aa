"""
Playlist folder tree helpers.

Folders are handled as an arena keyed by id (`{folder_id: parent_id}`) so that
re-parent checks never depend on recursive loading of a possibly corrupt
parent chain.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional

SELF_PARENT = "Cannot set folder as its own parent"
CIRCULAR_REFERENCE = "Cannot create circular folder reference"
CORRUPT_CHAIN = "Circular reference detected in existing folders"


# PUBLIC_INTERFACE
def find_cycle(
    folder_id: uuid.UUID,
    new_parent_id: Optional[uuid.UUID],
    parents: Mapping[uuid.UUID, Optional[uuid.UUID]],
) -> Optional[str]:
    """
    Check whether re-parenting `folder_id` under `new_parent_id` is cycle-free.

    Walks from the new parent up to the root. The move is rejected when the
    folder itself shows up on that chain. A visited set stops the walk if the
    stored chain already loops.

    Returns:
        None when the move is allowed, otherwise a human readable reason.
    """
    if new_parent_id is None:
        return None
    if new_parent_id == folder_id:
        return SELF_PARENT

    visited = {new_parent_id}
    current = parents.get(new_parent_id)
    while current is not None:
        if current == folder_id:
            return CIRCULAR_REFERENCE
        if current in visited:
            return CORRUPT_CHAIN
        visited.add(current)
        current = parents.get(current)
    return None


# PUBLIC_INTERFACE
def build_tree(nodes: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Nest flat folder dicts (each with `id` and `parentFolderId`) into a forest.

    Every node gets a `children` list. Nodes whose parent is unknown become
    roots. Siblings are ordered by name. Nodes that only reach each other
    through a loop are attached as roots so nothing is dropped.
    """
    by_id: Dict[Any, Dict[str, Any]] = {}
    for node in nodes:
        by_id[node["id"]] = {**node, "children": []}

    roots: List[Dict[str, Any]] = []
    parents = {node_id: node.get("parentFolderId") for node_id, node in by_id.items()}
    for node_id, node in by_id.items():
        parent_id = parents[node_id]
        if parent_id is None or parent_id not in by_id or _on_loop(node_id, parents):
            roots.append(node)
        else:
            by_id[parent_id]["children"].append(node)

    def _sort(level: List[Dict[str, Any]]) -> None:
        level.sort(key=lambda n: (str(n.get("name") or "").lower(), str(n["id"])))
        for child in level:
            _sort(child["children"])

    _sort(roots)
    return roots


def _on_loop(node_id: Any, parents: Mapping[Any, Any]) -> bool:
    seen = set()
    current = parents.get(node_id)
    while current is not None and current in parents and current not in seen:
        if current == node_id:
            return True
        seen.add(current)
        current = parents.get(current)
    return False
