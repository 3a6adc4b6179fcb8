import logging
from typing import Any, Mapping, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from relayrpc.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

# Values of these fields are never printed in full
SENSITIVE_FIELDS = frozenset({
    "shared_secret",
    "identity_secret",
    "secret_1",
    "revocation_code",
    "access_token",
})


def mask_value(value: str) -> str:
    """Keeps two characters at each end of a secret and masks the rest.

    Values of four characters or fewer are masked entirely.
    """
    if len(value) <= 4:
        return "*" * len(value)
    return f"{value[:2]}{'*' * (len(value) - 4)}{value[-2:]}"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None, reveal_secrets: bool = False):
        """Initializes the rich Console.

        Args:
            console: Console to print to (a new one by default).
            reveal_secrets: Print sensitive fields unmasked.
        """
        self._console = console or Console()
        self.reveal_secrets = reveal_secrets

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    @console.setter
    def console(self, console: Console) -> None:
        self._console = console

    def _format_value(self, name: str, value: Any) -> str:
        if value is None:
            return "[dim]-[/dim]"
        text = str(value)
        if name in SENSITIVE_FIELDS and not self.reveal_secrets:
            return mask_value(text)
        return text

    def display_result(self, title: str, fields: Mapping[str, Any], **kwargs: Any) -> None:
        """Displays the fields of a result in a two column table.

        Args:
            title: The table title.
            fields: Field name to value mapping.
        """
        table = Table(box=ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("Field", style="bold")
        table.add_column("Value", overflow="fold")
        for name, value in fields.items():
            table.add_row(name, self._format_value(name, value))

        logger.debug(f"Displaying result '{title}' with {len(fields)} fields")
        self.console.print(Panel(table, title=f"[bold green]{title}[/bold green]", border_style="green", box=SIMPLE))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, log: bool = True, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling.

        Args:
            warning_message: The warning message to display.
            log: Also record the message as a WARNING log entry.
        """
        if log:
            logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
