"""
Validators Module

Skill validators: people an EIT asks to confirm and score their experience
for a competency, through a single-use emailed link.
"""

from .router import router

__all__ = ["router"]
