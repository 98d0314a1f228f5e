"""Autonomous system installer (transactional, idempotent, reversible).

Core design goals:
- Fixed, hand-ordered provisioning pipeline
- Idempotent steps (re-runs converge without duplicate changes)
- Every applied mutation recorded in a change ledger
- Best-effort rollback by compensating actions on failure
- Read-only verification after a successful run
"""

__all__ = []
