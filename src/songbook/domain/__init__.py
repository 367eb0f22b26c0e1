"""Domain layer - library scanning, identity, reconciliation and sorting."""
