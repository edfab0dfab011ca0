"""HTTP layer: the OctoPrint client, payload models and FastAPI routers."""
