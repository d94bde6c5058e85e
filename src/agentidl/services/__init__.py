"""Service layer: compilation, projection, validation, conformance runs.

Services may import from domain, runtime, and infrastructure layers.
They must never import from commands or output.
"""
