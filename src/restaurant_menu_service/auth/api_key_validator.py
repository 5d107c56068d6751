"""API key validation for the menu API.

Keys are matched exactly against a configured set. An empty set disables the
gate entirely, which is how local development runs.
"""


class APIKeyValidator:
    """Validates X-API-Key values for the public menu routes."""

    def __init__(self, api_keys: list[str] | None = None) -> None:
        """Initialize validator with the accepted API keys.

        Args:
            api_keys: Accepted keys; empty or None disables validation
        """
        self.api_keys = set(api_keys or [])

    @property
    def enabled(self) -> bool:
        """Whether any key is configured."""
        return bool(self.api_keys)

    def validate(self, api_key: str | None) -> bool:
        """Validate an API key.

        Args:
            api_key: The API key sent by the client, None if absent

        Returns:
            bool: True if the gate is disabled or the key matches
        """
        if not self.enabled:
            return True
        return api_key is not None and api_key in self.api_keys
