"""
Session management module.

Sessions hold one conversation's history, search context, results and
booking draft. They are stored in Redis with a TTL and fall back to an
in-process store when Redis is unavailable.
"""

from .models import SearchContext, SessionData
from .manager import SessionManager, get_session_manager

__all__ = [
    # Models
    "SearchContext",
    "SessionData",
    # Manager
    "SessionManager",
    "get_session_manager",
]
