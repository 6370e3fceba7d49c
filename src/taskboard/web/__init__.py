"""Web application: FastAPI app, identity integration and the real-time sync layer."""
