"""Interface for interacting with the user (output only).

Defines the contract for displaying results, errors, warnings and
informational messages, allowing different UI implementations.
"""

import abc
from typing import Any, Mapping


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_result(self, title: str, fields: Mapping[str, Any], **kwargs: Any) -> None:
        """Displays a structured result (e.g. a decoded response body).

        Args:
            title: Heading shown above the fields.
            fields: Field name to value mapping, displayed in order.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass
