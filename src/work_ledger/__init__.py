"""Multi-tenant work entry ledger."""
