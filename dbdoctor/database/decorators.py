#!/usr/bin/env python3
"""
decorators.py
--------------------
Decorators shared by RowStore methods.

- log_database_operation: debug-log a write with its bound arguments and
  duration, log failures to errors.log
- handle_db_errors: turn SQLAlchemy errors into DatabaseError
"""
# --- Standard library imports ---
import inspect
import time
from functools import wraps
from typing import Any, Callable, Dict

# --- Third party imports ---
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

# --- Local imports ---
from dbdoctor.core.exceptions import DatabaseError
from dbdoctor.core.logging_manager import safe_logger


def _bound_arguments(function: Callable, args: tuple, kwargs: dict) -> Dict[str, Any]:
    """Name -> value of the call arguments, without self."""
    try:
        bound = inspect.signature(function).bind(*args, **kwargs)
    except TypeError:
        return {"args": [str(arg) for arg in args[1:]]}
    return {name: value for name, value in bound.arguments.items() if name != "self"}


def log_database_operation(operation_name: str) -> Callable:
    """
    Log a RowStore write at debug level.

    The instance's ``logger`` attribute is used; None disables logging.
    Calls are logged as "<operation>_started" / "<operation>_completed"
    with the bound arguments (simulate, table, uid, values, ...).

    Args:
        operation_name: Event name prefix, e.g. "delete_record"
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            logger = safe_logger(getattr(self, "logger", None))
            arguments = _bound_arguments(function, (self,) + args, kwargs)
            started = time.perf_counter()
            logger.log_debug(f"{operation_name}_started", arguments)

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "duration_seconds": round(time.perf_counter() - started, 6),
                        **arguments,
                    },
                )
                raise

            logger.log_debug(
                f"{operation_name}_completed",
                {
                    "duration_seconds": round(time.perf_counter() - started, 6),
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Convert SQLAlchemy errors into DatabaseError.

    DatabaseError subclasses raised by dbdoctor itself (NoSuchRecordError,
    UnexpectedAffectedRowsError, ...) pass through unchanged.
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Data integrity violation in {function.__name__}: {e}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation {function.__name__} failed: {e}") from e

    return wrapper
