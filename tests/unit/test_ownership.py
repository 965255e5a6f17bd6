"""Unit tests for the volume ownership guard."""

from __future__ import annotations

import pytest

from kubevirt_infra.errors import InvalidVolumeError
from kubevirt_infra.ownership import OwnershipPolicy, contains_labels, has_owned_prefix


class TestContainsLabels:
    """Test label superset matching."""

    def test_empty_required_always_passes(self):
        assert contains_labels({}, {})
        assert contains_labels(None, {})
        assert contains_labels({"a": "b"}, {})

    def test_superset_passes(self):
        assert contains_labels({"team": "x", "env": "prod"}, {"team": "x"})

    def test_missing_key_fails(self):
        assert not contains_labels({"env": "prod"}, {"team": "x"})

    def test_mismatched_value_fails(self):
        assert not contains_labels({"team": "y"}, {"team": "x"})

    def test_empty_value_is_not_missing(self):
        """A required empty value still needs the key to be present."""
        assert not contains_labels({}, {"team": ""})
        assert contains_labels({"team": ""}, {"team": ""})

    def test_none_candidate_fails_when_labels_required(self):
        assert not contains_labels(None, {"team": "x"})


class TestHasOwnedPrefix:
    def test_prefix_match(self):
        assert has_owned_prefix("pvc-a", "pvc-")

    def test_prefix_mismatch(self):
        assert not has_owned_prefix("a", "pvc-")
        assert not has_owned_prefix("pvc", "pvc-")


class TestOwnershipPolicy:
    """Test the combined predicate."""

    @pytest.fixture
    def team_policy(self) -> OwnershipPolicy:
        return OwnershipPolicy(name_prefix="pvc-", required_labels={"team": "x"})

    @pytest.mark.parametrize(
        ("name", "labels", "expected"),
        [
            ("pvc-a", {"team": "x"}, True),
            ("pvc-a", {}, False),
            ("a", {"team": "x"}, False),
            ("pvc-a", {"team": "x", "extra": "1"}, True),
            ("pvc-a", None, False),
        ],
    )
    def test_owns(self, team_policy, name, labels, expected):
        assert team_policy.owns(name, labels) is expected

    def test_owns_name_ignores_labels(self, team_policy):
        assert team_policy.owns_name("pvc-a")
        assert not team_policy.owns_name("a")

    def test_violation_is_invalid_volume_error(self, team_policy):
        err = team_policy.violation("a")
        assert isinstance(err, InvalidVolumeError)
        assert err.code == "invalid_volume"
        assert err.details == {"name": "a", "prefix": "pvc-"}

    def test_required_labels_are_copied(self):
        """Mutating the caller's dict must not change the policy."""
        labels = {"team": "x"}
        policy = OwnershipPolicy(name_prefix="pvc-", required_labels=labels)
        labels["team"] = "y"

        assert policy.owns("pvc-a", {"team": "x"})

    def test_policy_is_frozen(self, team_policy):
        with pytest.raises(AttributeError):
            team_policy.name_prefix = "other-"
