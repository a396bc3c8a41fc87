"""L1 Domain — pure version, edition and security logic."""
