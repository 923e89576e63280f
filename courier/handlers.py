"""
Exception handling utilities for the dispatcher.

By default an exception raised by a listener propagates to the caller of
dispatch(). A handler installed with Dispatcher.set_exception_handler() is
called instead and decides whether the dispatch stops or continues. Built-in
handlers: stopping with logging (log_and_stop), continuing with logging
(log_and_continue), silently continuing (silent) and collecting exceptions for
batch processing (collect).
"""

import logging
import sys
from typing import Any
from typing import Callable

from courier import listeners


logger = logging.getLogger(__name__)


EXCEPTION_HANDLER = Callable[[listeners.Listener, Any, Exception], bool]
"""
Signature for exception handlers.

Exception handlers receive the failing listener, the event and the exception,
then return True to stop the dispatch or False to continue to remaining
listeners.
"""

STOP = True
CONTINUE = False


def _event_name(event: Any) -> str:
    return type(event).__qualname__


def log_and_stop(
    listener: listeners.Listener, event: Any, exception: Exception
) -> bool:
    """Handler that stops the dispatch and logs the raised exception."""
    logger.error(
        f"Exception in listener:\n"
        f"  Event:     {_event_name(event)}\n"
        f"  Listener:  {listeners.get_callable_name(listener)}\n"
        f"  Exception: {exception.__class__.__name__}: {exception}",
        exc_info=True,
    )
    return STOP


def log_and_continue(
    listener: listeners.Listener, event: Any, exception: Exception
) -> bool:
    """Log listener errors but continue the dispatch."""
    logger.warning(
        f"Listener error (continuing): "
        f"{listeners.get_callable_name(listener)} on {_event_name(event)}: {exception}"
    )
    return CONTINUE


def silent(_: listeners.Listener, __: Any, ___: Exception) -> bool:
    """Silently ignore all exceptions."""
    return CONTINUE


exceptions_caught = []


def collect(listener: listeners.Listener, event: Any, exception: Exception) -> bool:
    """
    Collect exceptions for batch processing.
    This appends exceptions caught to courier.handlers.exceptions_caught which
    is a list.
    Either manage the list manually or use this function as an example to create
    a more robust exception collector.
    """
    exceptions_caught.append(
        {
            "listener": listeners.get_callable_name(listener),
            "event": _event_name(event),
            "exception": f"{exception.__class__.__name__}: {exception}",
            "exc_info": sys.exc_info(),
        }
    )
    return CONTINUE
