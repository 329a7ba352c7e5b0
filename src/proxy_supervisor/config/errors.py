from __future__ import annotations

"""Exception types for configuration handling."""


class ConfigurationError(RuntimeError):
    """Raised when configuration values are missing or malformed."""

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)

    @classmethod
    def unknown_server(cls, server_id: str) -> "ConfigurationError":
        """Create error for a DNS server id missing from the catalog."""
        return cls(f"Unknown DNS server id {server_id!r}")


__all__ = ["ConfigurationError"]
