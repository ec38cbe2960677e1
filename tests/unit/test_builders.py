"""Tests for payload and secret builders."""

from __future__ import annotations

from takaro_operator.builders.domain import (
    build_create_payload,
    build_limits_payload,
    build_update_payload,
    derive_external_reference_id,
    registration_token_secret_name,
    root_credentials_secret_name,
)
from takaro_operator.builders.secrets import (
    build_owner_references,
    build_registration_token_secret,
    build_root_credentials_secret,
)
from takaro_operator.models.domain import DomainLimits, DomainSettings

UID = "0f8fad5b-d9cb-469f-a165-70867728950e"


class TestDeriveExternalReferenceId:
    """Test cases for derive_external_reference_id."""

    def test_basic(self):
        """Test the namespace-name-uid layout."""
        assert derive_external_reference_id("games", "my-domain", UID) == "games-my-domain-0f8fad5b"

    def test_deterministic(self):
        """Test that the same inputs give the same id."""
        assert derive_external_reference_id("games", "d", UID) == derive_external_reference_id("games", "d", UID)

    def test_uid_distinguishes_recreated_objects(self):
        """Test that a new uid gives a new id."""
        other_uid = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
        assert derive_external_reference_id("games", "d", UID) != derive_external_reference_id(
            "games", "d", other_uid
        )

    def test_sanitized(self):
        """Test that invalid characters are replaced and case is folded."""
        result = derive_external_reference_id("Games", "My.Domain__01", UID)

        assert result == "games-my-domain-01-0f8fad5b"

    def test_length_limit(self):
        """Test that long names are truncated and keep the uid suffix."""
        result = derive_external_reference_id("n" * 40, "d" * 60, UID)

        assert len(result) <= 63
        assert result.endswith("-0f8fad5b")
        assert "--" not in result

    def test_cluster_scoped(self):
        """Test that an empty namespace is skipped."""
        assert derive_external_reference_id("", "d", UID) == "d-0f8fad5b"


class TestPayloads:
    """Test cases for Takaro payloads."""

    def test_limits_omit_unset(self):
        """Test that unset limits are left out."""
        assert build_limits_payload(DomainLimits(max_users=10)) == {"maxUsers": 10}
        assert build_limits_payload(DomainLimits()) == {}

    def test_create_payload(self):
        """Test the create body."""
        payload = build_create_payload(
            "My Domain",
            "games-my-domain-0f8fad5b",
            DomainLimits(max_game_servers=3, max_users=50),
            DomainSettings(),
        )

        assert payload == {
            "name": "My Domain",
            "externalReference": "games-my-domain-0f8fad5b",
            "state": "ACTIVE",
            "maxGameservers": 3,
            "maxUsers": 50,
        }

    def test_update_payload_maintenance(self):
        """Test that maintenance mode maps to the MAINTENANCE state."""
        payload = build_update_payload(DomainLimits(max_users=5), DomainSettings(maintenance_mode=True))

        assert payload == {"state": "MAINTENANCE", "maxUsers": 5}


class TestSecretBuilders:
    """Test cases for derived secret builders."""

    def test_secret_names(self):
        """Test the derived secret names."""
        assert registration_token_secret_name("d") == "d-registration-token"
        assert root_credentials_secret_name("d") == "d-root-credentials"

    def test_registration_token_secret(self):
        """Test the registration token secret."""
        secret = build_registration_token_secret("d", "reg-token")

        assert secret["name"] == "d-registration-token"
        assert secret["data"] == {"token": "reg-token"}
        assert secret["labels"]["takaro.io/domain-name"] == "d"
        assert secret["labels"]["takaro.io/secret-type"] == "registration-token"
        assert secret["labels"]["takaro.io/managed-by"] == "takaro-operator"

    def test_root_credentials_secret(self):
        """Test the root credentials secret."""
        secret = build_root_credentials_secret("d", "root", "pw")

        assert secret["name"] == "d-root-credentials"
        assert secret["data"] == {"username": "root", "password": "pw"}

    def test_owner_references(self):
        """Test that owner references point at the Domain as controller."""
        body = {
            "apiVersion": "takaro.io/v1",
            "kind": "Domain",
            "metadata": {"name": "d", "namespace": "games", "uid": UID},
        }

        (owner,) = build_owner_references(body)

        assert owner["apiVersion"] == "takaro.io/v1"
        assert owner["kind"] == "Domain"
        assert owner["name"] == "d"
        assert owner["uid"] == UID
        assert owner["controller"] is True
        assert owner["blockOwnerDeletion"] is True
