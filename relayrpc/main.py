"""Main entry point for the relayrpc application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from relayrpc.core.command_handler import CommandHandler
from relayrpc.core.services.two_factor_service import TwoFactorService

# --- Infrastructure Layer ---
# Config
from relayrpc.infrastructure.config.settings import (
    ConfigurationError,
    get_access_token,
    get_account_id,
    get_base_address,
    get_connection_timeout,
    get_limiter_delay,
    get_logging_settings,
    get_max_connections,
    get_max_tries,
    is_user_debugging,
    load_configuration,
    set_config,
)
# UI
from relayrpc.infrastructure.cli.display import ConsoleDisplay
# Monitoring
from relayrpc.infrastructure.monitoring.diagnostics import LoggingDiagnostics
from relayrpc.infrastructure.monitoring.logger_setup import level_from_name, setup_logging
# Resilience
from relayrpc.infrastructure.resilience.invocation_engine import InvocationEngine
from relayrpc.infrastructure.resilience.rate_limiter import KeyedRateLimiter
from relayrpc.infrastructure.resilience.retry_policy import RetryPolicy
# Session & Transport
from relayrpc.infrastructure.session.static_session import StaticSession
from relayrpc.infrastructure.transport.http_transport import HttpTransportClient

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.

    Raises:
        ConfigurationError: If a configuration value is invalid.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First, then logging based on it
    load_configuration()
    log_settings = get_logging_settings()
    setup_logging(
        log_level=level_from_name(log_settings['level']),
        log_format=log_settings['format'],
        log_file=log_settings['file'],
    )
    logger.info("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters & Services
    limiter_delay = get_limiter_delay()
    dependencies['ui'] = ConsoleDisplay()
    dependencies['session'] = StaticSession.from_config()
    dependencies['transport'] = HttpTransportClient(
        base_address=get_base_address(),
        default_timeout=get_connection_timeout(),
    )
    dependencies['rate_limiter'] = KeyedRateLimiter(
        limiter_delay=limiter_delay,
        max_connections=get_max_connections(),
    )

    # 3. Instantiate Resilience Services
    dependencies['engine'] = InvocationEngine(
        transport=dependencies['transport'],
        rate_limiter=dependencies['rate_limiter'],
        retry_policy=RetryPolicy(max_attempts=get_max_tries(), inter_attempt_delay=limiter_delay),
        diagnostics=LoggingDiagnostics(logging.getLogger("relayrpc.invocation")),
        user_debugging=is_user_debugging,
        request_timeout=get_connection_timeout(),
    )

    # 4. Instantiate Core Services & Command Handler
    dependencies['two_factor_service'] = TwoFactorService(engine=dependencies['engine'])
    dependencies['command_handler'] = CommandHandler(
        two_factor_service=dependencies['two_factor_service'],
        session=dependencies['session'],
        ui=dependencies['ui'],
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


def get_dependencies() -> Dict[str, Any]:
    """Returns the wired-up dependencies, creating them on first use."""
    global _dependencies
    if _dependencies is None:
        try:
            _dependencies = create_dependencies()
        except ConfigurationError as e:
            ConsoleDisplay().display_error(f"Invalid configuration: {e}")
            raise typer.Exit(code=2)
    return _dependencies


def reset_dependencies() -> None:
    """Drops the cached dependencies (used between CLI invocations in tests)."""
    global _dependencies
    _dependencies = None


# --- Typer App Definition ---
app = typer.Typer(
    name="relayrpc",
    help="relayrpc: resilient, rate-limited Web API calls for mobile authenticator setup.",
    add_completion=False,
)


def run_async(coro: Coroutine[Any, Any, int]) -> int:
    """Runs an async command handler from a sync Typer command and returns its exit code."""
    return asyncio.run(coro)


# --- CLI Commands ---

@app.command(name="add-authenticator")
def add_authenticator(
    device_id: Annotated[str, typer.Option("--device-id", "-d", help="Identifier of the device the authenticator is bound to.")],
    save: Annotated[Optional[Path], typer.Option("--save", "-s", dir_okay=False, help="Write the response (including secrets) to this JSON file.")] = None,
    show_secrets: Annotated[bool, typer.Option("--show-secrets", help="Print secrets unmasked.")] = False,
):
    """Request a new mobile authenticator for the configured account."""
    dependencies = get_dependencies()
    dependencies['ui'].reveal_secrets = show_secrets
    handler: CommandHandler = dependencies['command_handler']
    exit_code = run_async(handler.handle_add_authenticator(device_id, save))
    raise typer.Exit(code=exit_code)


@app.command(name="finalize-authenticator")
def finalize_authenticator(
    activation_code: Annotated[str, typer.Option("--activation-code", "-a", help="Code received by SMS or e-mail.")],
    authenticator_code: Annotated[str, typer.Option("--authenticator-code", "-c", help="Code generated from the new shared secret.")],
    authenticator_time: Annotated[int, typer.Option("--authenticator-time", "-t", min=1, help="Unix time the code was generated for.")],
):
    """Activate the authenticator added by add-authenticator."""
    handler: CommandHandler = get_dependencies()['command_handler']
    exit_code = run_async(handler.handle_finalize_authenticator(activation_code, authenticator_code, authenticator_time))
    raise typer.Exit(code=exit_code)


@app.command(name="show-config")
def show_config():
    """Show the effective configuration."""
    handler: CommandHandler = get_dependencies()['command_handler']
    config = {
        "base_address": get_base_address(),
        "max_tries": get_max_tries(),
        "limiter_delay": get_limiter_delay(),
        "connection_timeout": get_connection_timeout(),
        "max_connections": get_max_connections(),
        "debug": is_user_debugging(),
        "account_id": get_account_id(),
        "access_token": get_access_token(),
    }
    raise typer.Exit(code=handler.handle_show_config(config))


@app.callback()
def main_callback(
    debug: Annotated[bool, typer.Option("--debug", help="Trace every request attempt.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging.")] = False,
):
    """Global options, applied before any command runs."""
    if debug:
        set_config('debug', True)
    if debug or verbose:
        set_config('logging.level', 'DEBUG')


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
