"""Gemini API client initialization with error handling.

Used by the Gemini model invoker when INFERENCE_PROVIDER=gemini.
Uses the modern google-genai SDK (not google.generativeai).
"""

from typing import Optional

from google import genai

from docintel.config import get_settings


def get_gemini_client(api_key: Optional[str] = None) -> genai.Client:
    """Initialize and return a Gemini API client.

    Args:
        api_key: Explicit key; when omitted, GEMINI_API_KEY from the
            application settings is used.

    Returns:
        genai.Client: Initialized Gemini client ready for API calls.

    Raises:
        ValueError: If no key is given and GEMINI_API_KEY is not set.

    Example:
        >>> client = get_gemini_client()
        >>> response = client.models.generate_content(
        ...     model="gemini-2.0-flash",
        ...     contents=["Summarize this text"]
        ... )
    """
    key = api_key or get_settings().gemini_api_key

    if not key:
        raise ValueError(
            "GEMINI_API_KEY not set in environment. "
            "Please set this variable in your .env file or environment."
        )

    return genai.Client(api_key=key)
