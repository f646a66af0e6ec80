"""Infrastructure layer — database, edge store, graph snapshot.

This layer depends on stdlib and third-party libs (SQLAlchemy, NetworkX)
and on :mod:`genealogy.domain` for value types and errors.
It must never import from services, commands, or output.
"""
