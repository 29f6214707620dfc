"""Authentication module for loading the Notion integration token.

This module handles loading the Notion API key from environment variables
using python-dotenv. It validates that the token is present and raises
an appropriate error if it is missing.
"""

import os

from dotenv import load_dotenv

from .errors import InvalidCredentialsError


class Authenticator:
    """Loads and validates the Notion token from environment variables.

    The token is loaded from a .env file using python-dotenv and is never
    cached or logged to prevent security risks.

    Required environment variables:
        NOTION_API_KEY: Internal integration token of the Notion workspace

    Example:
        >>> auth = Authenticator()
        >>> token = auth.get_token()
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_token(self) -> str:
        """Get the Notion integration token from the environment.

        Returns:
            The integration token

        Raises:
            InvalidCredentialsError: If NOTION_API_KEY is missing or blank
        """
        token = os.getenv('NOTION_API_KEY', '').strip()
        if not token:
            raise InvalidCredentialsError("NOTION_API_KEY is not set")
        return token
