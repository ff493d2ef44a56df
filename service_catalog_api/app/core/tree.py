"""
Validation and navigation of service configuration trees.

A tree is stored as an adjacency list in JSON: a mapping from node id
to node, where each node lists its children by id.  Children are never
owned objects, so a tree can be checked for cycles and dangling
references before it is persisted.

``validate_tree`` is the gate in front of every tree write and
``resolve_path`` checks a consumer's selected path before a
configuration is saved.  Both are pure functions.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from pydantic import ValidationError

from ..schemas.tree import Tree, TreeNode
from .config import settings
from .errors import DisconnectedPath, MalformedTree

logger = logging.getLogger(__name__)

ROOT_ID = "root"


def _parse_nodes(raw: Mapping[str, Any]) -> Tree:
    nodes: Tree = {}
    for key, value in raw.items():
        if isinstance(value, TreeNode):
            node = value
        else:
            try:
                node = TreeNode.model_validate(value)
            except ValidationError as exc:
                first = exc.errors()[0]
                location = ".".join(str(part) for part in first["loc"]) or "node"
                raise MalformedTree(
                    "invalid_node", key, f"Node '{key}' is invalid: {location}: {first['msg']}"
                ) from exc
        if node.id is None:
            node = node.model_copy(update={"id": key})
        elif node.id != key:
            raise MalformedTree("id_mismatch", key, f"Node stored under '{key}' declares id '{node.id}'")
        nodes[key] = node
    return nodes


def validate_tree(raw: Any, max_depth: Optional[int] = None) -> Tree:
    """Validate a candidate tree and return it as parsed nodes.

    Checks run in order and the first violation is raised as
    ``MalformedTree``:

    1. the mapping has a ``root`` entry;
    2. every entry is a well formed node whose ``id`` matches its key;
    3. every child reference names an existing node;
    4. a depth-first walk from the root never revisits a node (cycles
       and nodes with two parents are both rejected) and never goes
       deeper than ``max_depth``;
    5. every reachable node either has children or offers at least one
       unit of measurement.

    Nodes not reachable from the root are kept but not checked by 4 and 5.
    """
    if max_depth is None:
        max_depth = settings.max_tree_depth
    if not isinstance(raw, Mapping):
        raise MalformedTree("missing_root", None, "Tree must be a JSON object keyed by node id")
    if ROOT_ID not in raw:
        raise MalformedTree("missing_root", None, "Tree has no 'root' node")

    nodes = _parse_nodes(raw)

    for node_id, node in nodes.items():
        for child_id in node.children:
            if child_id not in nodes:
                raise MalformedTree(
                    "unknown_child", node_id, f"Node '{node_id}' references unknown child '{child_id}'"
                )

    visited: Set[str] = set()
    order = _walk(nodes, ROOT_ID, max_depth, visited)
    # Detached components are never priced, but a cycle among them is
    # still a defect in the submitted structure.  Walk them from their
    # own tops first; whatever is left afterwards only hangs off cycles.
    referenced = {child_id for node in nodes.values() for child_id in node.children}
    for node_id in nodes:
        if node_id not in visited and node_id not in referenced:
            _walk(nodes, node_id, max_depth, visited)
    for node_id in nodes:
        if node_id not in visited:
            _walk(nodes, node_id, max_depth, visited)

    for node_id in order:
        node = nodes[node_id]
        if not node.children and not node.units:
            raise MalformedTree(
                "unpriceable_leaf",
                node_id,
                f"Leaf node '{node_id}' has no unit of measurement and cannot be priced",
            )

    unreachable = len(nodes) - len(order)
    if unreachable:
        logger.debug("Tree has %s node(s) not reachable from root", unreachable)
    return nodes


def _walk(nodes: Tree, start: str, max_depth: int, visited: Set[str]) -> List[str]:
    """Return node ids reachable from ``start`` in depth-first pre-order.

    Iterative so that pathological input cannot exhaust the Python
    stack.  ``on_path`` holds the ancestors of the node being visited:
    meeting one of them again is a cycle, meeting any other visited
    node means it has a second parent.
    """
    on_path: Set[str] = set()
    order: List[str] = []
    # Stack entries: (node id, depth, leaving).  A node is pushed a
    # second time with leaving=True to pop it off the current path.
    stack: List[Tuple[str, int, bool]] = [(start, 0, False)]
    while stack:
        node_id, depth, leaving = stack.pop()
        if leaving:
            on_path.discard(node_id)
            continue
        if node_id in on_path:
            raise MalformedTree("cycle", node_id, f"Node '{node_id}' is its own ancestor")
        if node_id in visited:
            raise MalformedTree("shared_node", node_id, f"Node '{node_id}' has more than one parent")
        if depth > max_depth:
            raise MalformedTree("max_depth", node_id, f"Tree is deeper than {max_depth} levels at '{node_id}'")
        visited.add(node_id)
        on_path.add(node_id)
        order.append(node_id)
        stack.append((node_id, depth, True))
        for child_id in reversed(nodes[node_id].children):
            stack.append((child_id, depth + 1, False))
    return order


def resolve_path(tree: Tree, path: List[str]) -> TreeNode:
    """Check that ``path`` walks parent→child edges from the root.

    Returns the terminal node.  Raises ``DisconnectedPath`` at the first
    step that is not an edge of the tree, or at index 0 when the path is
    empty or does not start at the root.
    """
    if not path or path[0] != ROOT_ID or ROOT_ID not in tree:
        raise DisconnectedPath(None, path[0] if path else None, 0)
    current = tree[ROOT_ID]
    for index in range(1, len(path)):
        child_id = path[index]
        if child_id not in current.children or child_id not in tree:
            raise DisconnectedPath(path[index - 1], child_id, index)
        current = tree[child_id]
    return current


def tree_to_json(tree: Tree) -> Dict[str, Any]:
    """Convert parsed nodes back to the external JSON shape."""
    return {node_id: node.model_dump(by_alias=True, exclude_none=True) for node_id, node in tree.items()}
