"""
FastAPI routers for the merge service.
"""

from app.routers import health, videos

__all__ = ["health", "videos"]
