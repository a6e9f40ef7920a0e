"""
Custom exceptions for snipbox.

Provides specific exception types for better error handling and user feedback.
"""

from __future__ import annotations

from collections.abc import Iterable


class SnipboxError(Exception):
    """Base exception for snipbox errors."""


class ConfigurationError(SnipboxError):
    """Error in configuration."""


# Options Errors


class OptionsError(SnipboxError):
    """Base exception for user-supplied run options."""

    user_message: str = "The run options are not valid."
    recovery_hint: str = "Options look like: version=3.11 bundle=none"


class OptionsParseError(OptionsError):
    """Options text does not follow the key=value grammar."""

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset
        self.user_message = f"I couldn't parse your options: {message} at character {offset + 1}."


class UnknownKeysError(OptionsError):
    """Options contained keys the language does not declare."""

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(f"unknown option keys: {', '.join(self.keys)}")
        quoted = ", ".join(f"`{key}`" for key in self.keys)
        self.user_message = f"Unknown option(s): {quoted}."


class UnknownValueError(OptionsError):
    """An option value is not one of the supported values."""

    def __init__(self, key: str, value: str, supported: Iterable[str] = ()):
        self.key = key
        self.value = value
        self.supported = tuple(supported)
        super().__init__(f"unknown value {value!r} for option {key!r}")
        self.user_message = f"`{value}` is not a supported value for `{key}`."
        if self.supported:
            self.recovery_hint = f"Supported values: {', '.join(self.supported)}"


class UnknownLanguageError(SnipboxError):
    """No language variant is registered for a code."""

    def __init__(self, code: str):
        super().__init__(f"unknown language code: {code!r}")
        self.code = code
        self.user_message = f"I'm sorry. I don't know how to run `{code}` code snippets."
        self.recovery_hint = "Use `snipbox languages` to see what I can run."


# Execution Errors


class ExecutorError(SnipboxError):
    """Base exception for sandbox executor errors."""

    user_message: str = "Something went wrong while running your code."
    recovery_hint: str = "Please try again in a little while."


class UnrecognizedImageError(ExecutorError):
    """The image backing a RunSpec has not been built yet."""

    def __init__(self, image: str):
        super().__init__(f"no such image: {image}")
        self.image = image


class TransportFailure(ExecutorError):
    """The container engine could not be reached or rejected a request."""

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation


class BuildError(SnipboxError):
    """Building an image from a RunSpec failed."""

    def __init__(self, image: str, detail: str):
        super().__init__(f"building {image} failed: {detail}")
        self.image = image
        self.detail = detail
        self.user_message = f"I couldn't prepare the `{image}` environment: {detail}"


def format_error_message(error: Exception) -> str:
    """
    Format an error message for display to user.

    Args:
        error: Exception to format

    Returns:
        Formatted error message with recovery hints
    """
    if isinstance(error, SnipboxError) and hasattr(error, "user_message"):
        message = error.user_message
        if getattr(error, "recovery_hint", None):
            message += f"\n{error.recovery_hint}"
        return message
    return str(error)
