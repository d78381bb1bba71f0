"""Services Layer - imperative shell around the ledger core.

Invariants:
    - TokenizationEngine is the only component with mutating public operations
    - Persistence helpers are async; the engine itself is synchronous
"""
