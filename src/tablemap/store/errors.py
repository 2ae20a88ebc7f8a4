"""Translation of driver failures into tablemap errors."""

from ..core.context import Context
from ..core.exceptions import StoreError


def wrap_driver_error(error: BaseException, sql: str, ctx: Context) -> StoreError:
    """Wrap a driver error, preferring the context's cancellation cause.

    Args:
        error: Native exception raised by the driver.
        sql: Statement that was running.
        ctx: Context the statement ran under.

    Returns:
        CancelledError or DeadlineExceededError when the context ended,
        otherwise StoreError. The caller raises it ``from error``.
    """
    cancelled = ctx.err()
    if cancelled is not None:
        return type(cancelled)(f"{cancelled}: {error}", statement=sql, original=error)
    return StoreError(f"Statement failed: {error}", statement=sql, original=error)
