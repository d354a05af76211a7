"""Domain layer - state machines, policies and ports. No database access."""
