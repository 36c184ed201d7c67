"""
Errors raised by the service layer.

Each carries the HTTP status the API answers with; main.py turns them into
``{"detail": ...}`` responses.
"""


class BookshelfError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(BookshelfError):
    status_code = 401


class Forbidden(BookshelfError):
    status_code = 403


class NotFound(BookshelfError):
    status_code = 404


class Conflict(BookshelfError):
    status_code = 409
