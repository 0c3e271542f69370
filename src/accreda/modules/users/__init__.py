"""
Users module - EIT profiles.
"""

from accreda.modules.users.models import EitProfile

__all__ = ["EitProfile"]
