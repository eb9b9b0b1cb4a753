"""Custom exceptions for terminal UI."""

import click


class TerminalUIError(click.ClickException):
    """Base exception for terminal UI errors.

    Printed in red on stderr; the command exits with status 1.
    """

    def show(self, file=None):
        click.secho(f"Error: {self.format_message()}", fg="red", err=True, file=file)


class EntityNotFoundError(TerminalUIError):
    """Entity not found, or the id prefix matches more than one row."""

    def __init__(self, entity: str, lookup: str):
        self.entity = entity
        self.lookup = lookup
        super().__init__(f"{entity} not found: {lookup}")


class OperationFailedError(TerminalUIError):
    """A service call was refused."""

    pass
