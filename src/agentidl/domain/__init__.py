"""Domain layer: type descriptors, extension attributes, interface models, rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, runtime, commands, or config.
"""
