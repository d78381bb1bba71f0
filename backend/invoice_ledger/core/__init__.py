"""Core Layer - pure ledger domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Collaborators (asset registry, transfer gateway, clock) are Protocols
      implemented outside core and injected
"""
