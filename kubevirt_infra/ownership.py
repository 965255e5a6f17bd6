"""Volume ownership guard.

A DataVolume belongs to this client when its name carries the configured
prefix AND its labels include every required infra label. Reads and deletes
check both; creates check the name only, before anything reaches the cluster.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from kubevirt_infra.errors import InvalidVolumeError


def contains_labels(
    candidate: Mapping[str, str] | None, required: Mapping[str, str]
) -> bool:
    """Return True if every required label is present with the same value."""
    candidate = candidate or {}
    for key, value in required.items():
        if key not in candidate or candidate[key] != value:
            return False
    return True


def has_owned_prefix(name: str, prefix: str) -> bool:
    return name.startswith(prefix)


@dataclass(frozen=True)
class OwnershipPolicy:
    """Immutable ownership rules, fixed for the life of a client."""

    name_prefix: str
    required_labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Copy so later mutation of the caller's dict cannot change the policy
        object.__setattr__(self, "required_labels", dict(self.required_labels))

    def owns_name(self, name: str) -> bool:
        return has_owned_prefix(name, self.name_prefix)

    def owns(self, name: str, labels: Mapping[str, str] | None) -> bool:
        """Full ownership predicate: owned prefix AND required labels."""
        return self.owns_name(name) and contains_labels(labels, self.required_labels)

    def violation(self, name: str) -> InvalidVolumeError:
        """Build the error reported when a volume is not owned."""
        return InvalidVolumeError(details={"name": name, "prefix": self.name_prefix})
