"""Domain layer — node/edge value types and the error hierarchy.

This layer depends only on stdlib.
It must never import from services, infrastructure, commands, or config.
"""
