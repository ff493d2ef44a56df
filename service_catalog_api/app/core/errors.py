"""
Errors raised by the configuration tree model and cost estimator.

All errors are deterministic rejections of client input; none of them
is worth retrying.  They derive from ``ValueError`` so callers that
only care about "bad input" can catch that, and each carries a stable
``code`` used in API error envelopes.
"""

from typing import Any, Dict, Optional


class CatalogError(ValueError):
    """Base class for tree, pricing and lifecycle rejections."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str, node_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.node_id = node_id

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.node_id is not None:
            payload["nodeId"] = self.node_id
        return payload


class MalformedTree(CatalogError):
    """A candidate tree failed a structural check.

    ``rule`` names the first violated check (``missing_root``,
    ``invalid_node``, ``id_mismatch``, ``unknown_child``, ``cycle``,
    ``shared_node``, ``max_depth`` or ``unpriceable_leaf``).
    """

    code = "MALFORMED_TREE"

    def __init__(self, rule: str, node_id: Optional[str], message: str) -> None:
        super().__init__(message, node_id)
        self.rule = rule

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["rule"] = self.rule
        return payload


class UnknownNode(CatalogError):
    code = "UNKNOWN_NODE"

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node '{node_id}' does not exist in the tree", node_id)


class InvalidUnit(CatalogError):
    code = "INVALID_UNIT"

    def __init__(self, node_id: str, unit: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Unit '{unit}' is not offered by node '{node_id}'", node_id)
        self.unit = unit


class UnpricedUnit(InvalidUnit):
    """Raised instead of pricing at zero when strict unit pricing is on."""

    code = "UNPRICED_UNIT"

    def __init__(self, node_id: str, unit: str) -> None:
        super().__init__(node_id, unit, f"Unit '{unit}' has no price in the unit cost table")


class InvalidQuantity(CatalogError):
    code = "INVALID_QUANTITY"

    def __init__(self, node_id: str, quantity: Any) -> None:
        super().__init__(
            f"Quantity for node '{node_id}' must be greater than zero and at most 1e12, got {quantity}", node_id
        )
        self.quantity = quantity


class DisconnectedPath(CatalogError):
    """A selected path is not a root-to-node walk.

    ``index`` is the position in the path of the first element that
    could not be reached; ``parent`` is the element before it (``None``
    when the path does not start at the root).
    """

    code = "DISCONNECTED_PATH"

    def __init__(self, parent: Optional[str], child: Optional[str], index: int) -> None:
        if parent is None:
            message = f"Path must start at 'root', got {child!r}"
        else:
            message = f"Node '{child}' is not a child of '{parent}' (path index {index})"
        super().__init__(message, child)
        self.parent = parent
        self.child = child
        self.index = index

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["breakPoint"] = {"parent": self.parent, "child": self.child, "index": self.index}
        return payload


class InvalidTransition(CatalogError):
    code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot change configuration status from '{current}' to '{target}'")
        self.current = current
        self.target = target


class ConfigurationLocked(CatalogError):
    """The selection of an active configuration cannot be edited."""

    code = "CONFIGURATION_LOCKED"

    def __init__(self, config_id: int) -> None:
        super().__init__(f"Configuration {config_id} is active; its selection can no longer be changed")
        self.config_id = config_id
