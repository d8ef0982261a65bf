"""Assistant conversation sessions: models, memory, suggestions and the session controller."""
