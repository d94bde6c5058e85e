"""Infrastructure layer: template loading and document I/O.

This layer depends on the domain layer and third-party libs (Jinja2).
It must never import from services, runtime, commands, or output.
"""
