"""Internal diagnostic logging, printed to standard output while DEBUG is on."""

from __future__ import annotations

import os
import sys
import traceback
from datetime import datetime
from typing import Any

DEBUG = True

_THIS_FILE = os.path.basename(__file__)
_STACK_DEPTH = 12


def _sprint(args: tuple[Any, ...]) -> str:
    """Join operands, adding a space between two neighbours that are not strings."""
    parts: list[str] = []
    prev_is_str = True
    for index, arg in enumerate(args):
        is_str = isinstance(arg, str)
        if index > 0 and not is_str and not prev_is_str:
            parts.append(" ")
        parts.append(str(arg))
        prev_is_str = is_str
    return "".join(parts)


def _outside_frames() -> list[traceback.FrameSummary]:
    """Call frames outside this module, innermost first."""
    return [
        frame
        for frame in reversed(traceback.extract_stack())
        if os.path.basename(frame.filename) != _THIS_FILE
    ]


def _do_print(content: str, with_stack: bool) -> None:
    if not DEBUG:
        return
    frames = _outside_frames()
    now = datetime.now()
    stamp = now.strftime("%Y-%m-%d %H:%M:%S") + f".{now.microsecond // 1000:03d}"
    if frames:
        where = f"{os.path.basename(frames[0].filename)}:{frames[0].lineno}"
    else:
        where = "unknown:0"
    lines = [f"{stamp} [INTE] {where} {content}\n"]
    if with_stack:
        lines.append("Caller Stack:\n")
        lines.extend(
            f"    {os.path.basename(f.filename)}:{f.lineno}\n"
            for f in frames[:_STACK_DEPTH]
        )
    sys.stdout.write("".join(lines))


def _format(fmt: str, args: tuple[Any, ...]) -> str:
    return fmt % args if args else fmt


def print_(*args: Any) -> None:
    """Print the operands on one line."""
    if DEBUG:
        _do_print(_sprint(args), False)


def printf(fmt: str, *args: Any) -> None:
    """Print ``fmt`` formatted with ``%`` and ``args``."""
    if DEBUG:
        _do_print(_format(fmt, args), False)


def error(*args: Any) -> None:
    """Print the operands followed by the caller stack."""
    if DEBUG:
        _do_print(_sprint(args), True)


def errorf(fmt: str, *args: Any) -> None:
    """Print formatted text followed by the caller stack."""
    if DEBUG:
        _do_print(_format(fmt, args), True)