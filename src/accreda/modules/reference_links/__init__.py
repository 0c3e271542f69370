"""
Reference Links Module

Standalone reference-approval requests sent from the reference approval
app. Unlike job references, an approved link keeps its token row as the
record of the approval.
"""

from .router import router

__all__ = ["router"]
