"""Tests for error sanitization utilities."""

from __future__ import annotations

from takaro_operator.utils.errors import (
    sanitize_dict,
    sanitize_error_message,
    sanitize_exception,
)


class TestSanitizeErrorMessage:
    """Test cases for sanitize_error_message function."""

    def test_sanitize_bearer_token(self):
        """Test that bearer credentials are sanitized."""
        message = "Request failed: Authorization: Bearer abc.def.ghi"
        result = sanitize_error_message(message)
        assert "abc.def.ghi" not in result
        assert "[REDACTED]" in result

    def test_sanitize_password(self):
        """Test that passwords are sanitized."""
        message = "Error: password: mysecretpassword123"
        result = sanitize_error_message(message)
        assert "mysecretpassword123" not in result
        assert "[REDACTED]" in result

    def test_sanitize_token_assignment(self):
        """Test that token=value pairs are sanitized."""
        message = "bad request token=tok_123456"
        result = sanitize_error_message(message)
        assert "tok_123456" not in result

    def test_sanitize_case_insensitive(self):
        """Test that sanitization is case-insensitive."""
        message = "Error: PASSWORD: hunter2"
        result = sanitize_error_message(message)
        assert "hunter2" not in result

    def test_no_sanitization_needed(self):
        """Test that messages without sensitive data remain unchanged."""
        message = "Error: Resource not found"
        assert sanitize_error_message(message) == message

    def test_plain_word_token_is_kept(self):
        """Test that prose mentioning a token is left alone."""
        message = "Failed to generate registration token for domain abc"
        assert sanitize_error_message(message) == message


class TestSanitizeException:
    """Test cases for sanitize_exception function."""

    def test_sanitize_exception(self):
        """Test sanitizing an exception."""
        error = ValueError("password: secret123")
        result = sanitize_exception(error)
        assert "secret123" not in result
        assert "[REDACTED]" in result


class TestSanitizeDict:
    """Test cases for sanitize_dict function."""

    def test_sanitize_sensitive_keys(self):
        """Test that sensitive keys are redacted."""
        data = {"name": "my-domain", "password": "p@ss", "registration_token": "tok"}
        result = sanitize_dict(data)
        assert result["name"] == "my-domain"
        assert result["password"] == "[REDACTED]"
        assert result["registration_token"] == "[REDACTED]"

    def test_sanitize_nested(self):
        """Test that nested dictionaries are sanitized."""
        data = {"outer": {"secret": "value", "keep": 1}}
        result = sanitize_dict(data)
        assert result["outer"]["secret"] == "[REDACTED]"
        assert result["outer"]["keep"] == 1

    def test_additional_keys(self):
        """Test redacting caller supplied keys."""
        result = sanitize_dict({"username": "root"}, sensitive_keys={"username"})
        assert result["username"] == "[REDACTED]"

    def test_original_untouched(self):
        """Test that the input dictionary is not modified."""
        data = {"password": "p"}
        sanitize_dict(data)
        assert data == {"password": "p"}
