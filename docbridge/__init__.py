"""docbridge - persistence manager mapping pydantic documents to search-engine index operations."""
