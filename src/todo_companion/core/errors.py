# src/todo_companion/core/errors.py

"""
Error taxonomy shared by the service layer and both front-ends.

Each error carries the HTTP-equivalent status code and a message that is safe
to show to the caller. Front-ends translate these; they never let them crash
the process.
"""

from __future__ import annotations


class TaskError(Exception):
    status_code = 500
    public_message = "Internal error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidInput(TaskError):
    status_code = 400
    public_message = "Invalid input."


class Unidentified(TaskError):
    """No owner identity could be resolved for the request."""

    status_code = 401
    public_message = "Unauthenticated: no user identity provided."


class NotFound(TaskError):
    """No task with the given id belongs to the calling owner."""

    status_code = 404
    public_message = "Task not found."


class StorageUnavailable(TaskError):
    status_code = 500
    public_message = "Storage is unavailable."
