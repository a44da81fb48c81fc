"""Exceptions raised by express-to-openapi."""


class ExpressOpenApiError(Exception):
    """Base class for all express-to-openapi errors."""


class SourceParseError(ExpressOpenApiError):
    """The application source could not be parsed into a syntax tree."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)
