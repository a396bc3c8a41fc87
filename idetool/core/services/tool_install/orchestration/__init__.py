"""L5 Orchestration — the install engine."""
