"""Constants and payload builders shared by the tests."""

TOKEN_URL = "https://login.questrade.com/oauth2/token"
API_URL = "https://api01.iq.questrade.com/"
NEW_API_URL = "https://api05.iq.questrade.com/"


def token_response(**overrides) -> dict:
    """Body of a successful refresh-token exchange."""
    data = {
        "access_token": "new_access",
        "refresh_token": "new_refresh",
        "api_server": NEW_API_URL,
        "expires_in": 1800,
        "token_type": "Bearer",
    }
    data.update(overrides)
    return data
