from typing import Any, TypedDict

from loguru import logger

MAX_LEN_ARGS = 250
MAX_LEN_KWARGS = 250


class HandlerDict(TypedDict):
    """Dictionary of details for a backoff or giveup."""

    target: Any
    args: tuple[Any]
    kwargs: dict[str, Any]
    tries: int
    elapsed: float
    wait: float
    value: Any


def on_backoff(details: HandlerDict) -> None:
    """Callback fired whenever a retried DLP call is backed off."""
    _log(
        logger.warning,
        (
            "Backing off {wait:0.1f}s after {tries} tries calling {target} "
            "with args {args} and kwargs {kwargs}"
        ),
        details,
    )


def on_giveup(details: HandlerDict) -> None:
    """Callback fired when a retried DLP call runs out of tries."""
    _log(
        logger.error,
        (
            "Gave up after {tries} tries calling {target} "
            "with args {args} and kwargs {kwargs}"
        ),
        details,
    )


def _log(log: Any, msg: str, details: HandlerDict) -> None:
    target = details["target"]
    log(
        msg.format(
            wait=details.get("wait", 0.0),
            tries=details["tries"],
            target=getattr(target, "__name__", target),
            args=_truncate(str(details["args"]), MAX_LEN_ARGS),
            kwargs=_truncate(str(details["kwargs"]), MAX_LEN_KWARGS),
        )
    )


def _truncate(s: str, max_len: int) -> str:
    if len(s) > max_len:
        return s[:max_len] + "..."
    return s
