from __future__ import annotations

import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Mapping, MutableMapping, Optional, Sequence, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxstring = 80
_repr.maxlist = 6
_repr.maxtuple = 6
_repr.maxdict = 6


def _summarize_array(value: np.ndarray, max_items: int) -> str:
    head = f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"
    if value.size == 0:
        return head
    if value.size <= max_items:
        return f"{head}, values={_repr.repr(value.tolist())}"
    finite = value[np.isfinite(value)] if value.dtype.kind == "f" else value
    if finite.size == 0:
        return f"{head}, all-nan"
    return f"{head}, min={float(finite.min()):.6g}, max={float(finite.max()):.6g}"


def safe_repr(value: Any, *, max_items: int = 6, max_length: int = 300) -> str:
    """Return a short repr suitable for DEBUG lines, summarising large values."""

    if isinstance(value, np.ndarray):
        return _summarize_array(value, max_items)

    if isinstance(value, Mapping):
        parts = []
        for idx, (key, item) in enumerate(value.items()):
            if idx >= max_items:
                parts.append(f"... ({len(value)} items)")
                break
            parts.append(f"{safe_repr(key)}: {safe_repr(item)}")
        return "{" + ", ".join(parts) + "}"

    if isinstance(value, (list, tuple)) and len(value) > max_items:
        shown = ", ".join(safe_repr(item) for item in value[:max_items])
        kind = "[...]" if isinstance(value, list) else "(...)"
        return f"{kind[0]}{shown}, ... ({len(value)} items){kind[-1]}"

    rendered = _repr.repr(value)
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _format_arguments(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [safe_repr(arg) for arg in args]
    parts.extend(f"{key}={safe_repr(val)}" for key, val in kwargs.items())
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that emits DEBUG entry/exit lines for ``func``."""

    def decorator(func: F) -> F:
        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s (%s)", qualname, _format_arguments(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.debug("Exception in %s", qualname, exc_info=True)
                raise
            if log_result:
                logger.debug("Exiting %s -> %s", qualname, safe_repr(result))
            else:
                logger.debug("Exiting %s", qualname)
            return result

        return cast(F, wrapper)

    return decorator


__all__ = ["debug_log_call", "safe_repr"]
