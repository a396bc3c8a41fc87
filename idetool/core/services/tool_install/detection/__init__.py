"""L3 Detection — what is installed where."""
