"""
Version helpers for the Community Python SDK.

`APP_NAME` and `__version__` are stamped on every transaction the SDK
submits (`App-Name` / `App-Version` tags) so indexers can attribute them.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"

APP_NAME = "CommunityPy"


def user_agent() -> str:
    return f"community-sdk-py/{__version__}"


__all__ = ["__version__", "APP_NAME", "user_agent"]
