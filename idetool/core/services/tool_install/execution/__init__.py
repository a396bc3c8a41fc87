"""L4 Execution — side effects: requests, processes, downloads, archives."""
