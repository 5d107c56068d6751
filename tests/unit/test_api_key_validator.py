"""Unit tests for API key validation."""

import pytest

from restaurant_menu_service.auth.api_key_validator import APIKeyValidator


@pytest.mark.unit
class TestAPIKeyValidator:
    """Test suite for APIKeyValidator."""

    def test_validator_with_keys_is_enabled(self) -> None:
        """Test that configuring keys enables the gate."""
        validator = APIKeyValidator(api_keys=["key1", "key2"])
        assert validator.enabled is True

    @pytest.mark.parametrize("api_keys", [None, []])
    def test_validator_without_keys_is_disabled(self, api_keys: list[str] | None) -> None:
        """Test that no configured keys disables the gate."""
        validator = APIKeyValidator(api_keys=api_keys)

        assert validator.enabled is False
        assert validator.validate(None) is True
        assert validator.validate("anything") is True

    def test_validate_returns_true_for_valid_key(self) -> None:
        """Test that validate returns True for a valid API key."""
        validator = APIKeyValidator(api_keys=["valid-key"])
        assert validator.validate("valid-key") is True

    def test_validate_returns_false_for_invalid_key(self) -> None:
        """Test that validate returns False for an invalid API key."""
        validator = APIKeyValidator(api_keys=["valid-key"])
        assert validator.validate("invalid-key") is False

    @pytest.mark.parametrize("api_key", [None, ""])
    def test_validate_returns_false_for_missing_key(self, api_key: str | None) -> None:
        """Test that a missing or empty key is rejected when the gate is on."""
        validator = APIKeyValidator(api_keys=["valid-key"])
        assert validator.validate(api_key) is False

    def test_validate_works_with_multiple_valid_keys(self) -> None:
        """Test that validate accepts any of multiple valid keys."""
        validator = APIKeyValidator(api_keys=["key1", "key2", "key3"])
        assert validator.validate("key1") is True
        assert validator.validate("key3") is True
        assert validator.validate("invalid") is False

    def test_validate_is_case_sensitive(self) -> None:
        """Test that API key validation is case-sensitive."""
        validator = APIKeyValidator(api_keys=["TestKey123"])
        assert validator.validate("TestKey123") is True
        assert validator.validate("testkey123") is False

    def test_validate_handles_whitespace(self) -> None:
        """Test that validate does not strip whitespace."""
        validator = APIKeyValidator(api_keys=["key-with-no-spaces"])
        assert validator.validate(" key-with-no-spaces") is False
        assert validator.validate("key-with-no-spaces ") is False
