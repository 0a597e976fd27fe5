"""Tutorials query service: structured repository queries over SQLAlchemy with a FastAPI surface."""
