import logging
import os

import requests

from errors import (
    ConfigurationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

NEYNAR_API_BASE = os.environ.get(
    "NEYNAR_API_BASE", "https://api.neynar.com/v2/farcaster"
)

PROFILE_FIELDS = ("fid", "username", "display_name", "pfp_url", "bio")


# =================================================
# NEYNAR LOOKUP
# =================================================

class ProfileLookup:
    """Finds a Farcaster profile by username through Neynar's user search.

    The API key is handed in by the caller; nothing here reads the
    environment, so a lookup with a given key always behaves the same.
    """

    def __init__(self, api_key, base_url=NEYNAR_API_BASE, session=None, timeout=10):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def lookup(self, username):
        if not self.api_key:
            logger.error("NEYNAR_API_KEY not found")
            raise ConfigurationError("API key not configured")

        username = (username or "").strip() if isinstance(username, str) else ""
        if not username:
            raise ValidationError("Username is required")

        logger.info("Fetching Farcaster profile for username: %s", username)

        try:
            r = self.session.get(
                f"{self.base_url}/user/search",
                params={"q": username, "limit": 1},
                headers={
                    "accept": "application/json",
                    "api_key": self.api_key,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Neynar request failed: %s", e)
            raise UpstreamError("Failed to fetch profile from Neynar", 502)

        if not r.ok:
            logger.error("Neynar API error: %s %s", r.status_code, r.text)
            raise UpstreamError("Failed to fetch profile from Neynar", r.status_code)

        try:
            data = r.json()
        except ValueError:
            raise UpstreamError("Failed to fetch profile from Neynar", 502)

        users = ((data or {}).get("result") or {}).get("users") or []
        if not users:
            logger.info("No user found for username: %s", username)
            raise NotFoundError("User not found")

        user = users[0]
        logger.info(
            "Successfully fetched profile: fid=%s username=%s",
            user.get("fid"), user.get("username"),
        )
        return public_profile(user)


def public_profile(user):
    bio = ((user.get("profile") or {}).get("bio") or {}).get("text") or ""
    return {
        "fid": user.get("fid"),
        "username": user.get("username"),
        "display_name": user.get("display_name"),
        "pfp_url": user.get("pfp_url"),
        "bio": bio,
    }


# =================================================
# PROXY CLIENT (used by the scanner page)
# =================================================

def fetch_profile_via_proxy(proxy_url, username, session=None, timeout=10):
    http = session or requests
    try:
        r = http.post(proxy_url, json={"username": username}, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Profile proxy unreachable: %s", e)
        raise UpstreamError("Profile lookup unavailable", 502)

    if r.status_code == 200:
        try:
            data = r.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.warning("Profile proxy sent a non-JSON reply for %s", username)
            raise UpstreamError("Profile lookup returned a bad reply", 502)

        profile = {k: data.get(k) for k in PROFILE_FIELDS}
        if profile["fid"] is not None:
            try:
                profile["fid"] = int(profile["fid"])
            except (TypeError, ValueError):
                raise UpstreamError("Profile lookup returned a bad fid", 502)
        return profile

    try:
        message = (r.json() or {}).get("error") or "Profile lookup failed"
    except ValueError:
        message = "Profile lookup failed"

    if r.status_code == 400:
        raise ValidationError(message)
    if r.status_code == 404:
        raise NotFoundError(message)
    if r.status_code == 500 and message == "API key not configured":
        raise ConfigurationError(message)
    raise UpstreamError(message, r.status_code)
