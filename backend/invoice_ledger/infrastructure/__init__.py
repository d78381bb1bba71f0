"""Infrastructure Layer - database, logging, and in-memory collaborator implementations."""
