"""HTTP routers for the assistant API."""
