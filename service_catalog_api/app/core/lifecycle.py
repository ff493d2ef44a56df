"""Status rules for saved configurations."""

from enum import Enum
from typing import Dict, FrozenSet

from .errors import InvalidTransition


class ConfigurationStatus(str, Enum):
    DRAFT = "draft"
    SAVED = "saved"
    ACTIVE = "active"


# Deletion is not a status; owners may delete a configuration at any
# point and the row is removed.
ALLOWED_TRANSITIONS: Dict[ConfigurationStatus, FrozenSet[ConfigurationStatus]] = {
    ConfigurationStatus.DRAFT: frozenset({ConfigurationStatus.SAVED}),
    ConfigurationStatus.SAVED: frozenset({ConfigurationStatus.DRAFT, ConfigurationStatus.ACTIVE}),
    ConfigurationStatus.ACTIVE: frozenset(),
}


def check_transition(current: str, target: str) -> ConfigurationStatus:
    """Return ``target`` as a status if the move from ``current`` is allowed.

    Setting the status a configuration already has is accepted as a
    no-op.  ``draft -> active`` is refused: a configuration has to be
    saved under a name before it can be marked active.
    """
    current_status = ConfigurationStatus(current)
    target_status = ConfigurationStatus(target)
    if current_status is target_status:
        return target_status
    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise InvalidTransition(current_status.value, target_status.value)
    return target_status
