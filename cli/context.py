"""Shared CLI context with lazy-initialized dependencies."""

from agenda.config import AgendaConfig
from agenda.storage.calendar_store import CalendarStore
from agenda.sync.controller import SyncController
from agenda.sync.reminder_scheduler import Notifier


class CLIContext:
    """Shared context with lazy-initialized dependencies for CLI commands.

    Usage:
        ctx = CLIContext()
        entries = ctx.controller.load_all()
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        config: AgendaConfig | None = None,
    ):
        """Initialize CLI context.

        Args:
            verbose: If True, enable info logging on the console
            quiet: If True, suppress non-error output
            config: Explicit configuration (loaded from the environment if None)
        """
        self.verbose = verbose
        self.quiet = quiet

        # Lazy-loaded dependencies
        self._config: AgendaConfig | None = config
        self._store: CalendarStore | None = None
        self._controller: SyncController | None = None

    @property
    def config(self) -> AgendaConfig:
        """Get configuration (lazy-loaded)."""
        if self._config is None:
            self._config = AgendaConfig.from_env()
        return self._config

    @property
    def store(self) -> CalendarStore:
        """Get calendar store (lazy-loaded)."""
        if self._store is None:
            self._store = CalendarStore(self.config)
        return self._store

    @property
    def controller(self) -> SyncController:
        """Get sync controller (lazy-loaded)."""
        if self._controller is None:
            self._controller = SyncController(self.config, store=self.store)
        return self._controller

    def loaded_controller(self, notifier: Notifier | None = None) -> SyncController:
        """Controller with the calendar file loaded into its model."""
        controller = self.controller
        if notifier is not None:
            controller.reminders.notifier = notifier
        if not controller.initial_load_completed:
            controller.load_all()
        return controller


# Global context instance (set by Typer callback)
_ctx: CLIContext | None = None


def get_context() -> CLIContext:
    """Get the current CLI context.

    Raises:
        RuntimeError: If context not initialized
    """
    if _ctx is None:
        raise RuntimeError("CLI context not initialized. This should not happen.")
    return _ctx


def set_context(ctx: CLIContext) -> None:
    """Set the global CLI context."""
    global _ctx
    _ctx = ctx
