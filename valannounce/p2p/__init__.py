"""HTTP surface of the registry: FastAPI service, wire schemas and client."""
