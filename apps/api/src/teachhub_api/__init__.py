"""API package for the TeachHub/AdhyayanX authentication service.

This FastAPI application provides:
- Signup, login, refresh-token rotation and logout (under /api/auth)
- Password reset by emailed one-time token
- The current user's profile (GET /api/users/me)
- A cookie-presence gate for page routes

The ASGI app lives in ``teachhub_api.main`` (``app`` / ``create_app``).
"""
