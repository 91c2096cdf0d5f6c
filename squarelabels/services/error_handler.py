"""Error handling service: fatal startup errors and guarded host callbacks."""

import sys
import functools
import traceback
from typing import Any, Callable, Optional

from squarelabels.services.logging_service import LoggingService


class ErrorHandler:
    """Handles fatal errors and keeps runtime errors away from the host."""

    @staticmethod
    def handle_fatal_error(error: Exception, context: Optional[str] = None) -> None:
        """Handle a fatal error by printing to console and terminating.

        Only used by standalone entry points; inside a host application the
        overlay never terminates the process.

        Args:
            error: The exception that occurred.
            context: Optional context message describing where the error occurred.
        """
        print("=" * 80, file=sys.stderr)
        print("FATAL ERROR", file=sys.stderr)
        print("=" * 80, file=sys.stderr)

        if context:
            print(f"Context: {context}", file=sys.stderr)
            print("", file=sys.stderr)

        print(f"Error Type: {type(error).__name__}", file=sys.stderr)
        print(f"Error Message: {str(error)}", file=sys.stderr)
        print("", file=sys.stderr)

        print("Traceback:", file=sys.stderr)
        traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)

        print("=" * 80, file=sys.stderr)
        sys.exit(1)

    @staticmethod
    def setup_exception_handler() -> None:
        """Install a global exception handler for uncaught exceptions."""
        def exception_handler(exc_type, exc_value, exc_traceback):
            """Handle uncaught exceptions."""
            if exc_type == KeyboardInterrupt:
                print("\nInterrupted by user.", file=sys.stderr)
                sys.exit(130)  # Standard exit code for SIGINT

            error = exc_value if exc_value else exc_type()
            ErrorHandler.handle_fatal_error(error, "Uncaught exception")

        sys.excepthook = exception_handler

    @staticmethod
    def guard(context: str, default: Any = None) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator for callbacks invoked by the host (events, timers, messages).

        Exceptions are logged and replaced by ``default`` so that a failure
        inside the overlay degrades to "no visible change" instead of
        breaking the host's event processing.

        Args:
            context: Description used in the log message.
            default: Value returned when the callback raises. Callables are
                invoked with no arguments to build a fresh value.

        Returns:
            Decorator.
        """
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            @functools.wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    LoggingService.get_instance().error(f"{context} failed: {e}", exc_info=e)
                    return default() if callable(default) else default
            return wrapper
        return decorator
