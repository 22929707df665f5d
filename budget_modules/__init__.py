"""Use-case modules of the budget analytics engine."""
