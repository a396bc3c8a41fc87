"""L2 Resolver — dependency collection."""
