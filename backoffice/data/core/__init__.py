"""
Core models: users and the audited base every back-office record extends
"""

from .user_info.user import User

__all__ = [
    'User',
]
