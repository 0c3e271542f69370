"""
Approvals Module

The single-use, time-limited approval link shared by every approvable
subject (job references, skill validators and standalone reference links):

1. Issue: store a token hash, mark the subject pending, email the link
2. Resolve: show the approver the subject behind a live link
3. Commit: consume the link and record the approval in one transaction

Security Features:
- SHA-256 token hashing (tokens never stored in plain text)
- Atomic single use: one conditional write claims a token
- Rate limiting with fail-closed behavior (requires Redis)
- State machine validation for status transitions

Background Jobs (via APScheduler):
- approval_tokens_purge_expired: Runs hourly, removes stale unused tokens

Per-kind routers live in the references, validators and reference_links
modules; the admin router is in admin_router.
"""
