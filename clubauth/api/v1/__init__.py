"""
API v1 package.

Contains versioned routes for club signup, verification, login and password recovery.
"""

from clubauth.api.v1.routes import router

__all__ = ["router"]
