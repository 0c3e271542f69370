"""
Job References Module

Jobs on an EIT's record and the references attached to them. EITs email a
single-use link to a referee, who fills in their details and approves.

API Endpoints:
- POST /send-reference
- GET /references/{token}
- POST /references/{token}
"""

from .router import router

__all__ = ["router"]
