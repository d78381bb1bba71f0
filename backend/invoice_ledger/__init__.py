"""Invoice Ledger Package - collateral-backed invoice tokenization ledger.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
