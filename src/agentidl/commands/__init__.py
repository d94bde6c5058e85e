"""Subcommand modules for agentidl.

Provides register_commands() which uses deferred imports to keep
``agentidl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register every standalone command on the root CLI group."""
    from agentidl.commands.check_document import check_document
    from agentidl.commands.conformance import conformance
    from agentidl.commands.generate import generate
    from agentidl.commands.validate import validate

    cli.add_command(generate)
    cli.add_command(validate)
    cli.add_command(check_document)
    cli.add_command(conformance)
