"""HTTP API package - FastAPI routers, schemas and dependencies."""
