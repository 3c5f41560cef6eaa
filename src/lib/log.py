"""
Centralized logging using Loguru with context-aware verbosity.

LOG() respects the verbosity of the ProgramState connected to the current
context, so the segmenter, scanner and renderer can report progress without
being handed the state. WARN() is for degradations that are always reported
(failed rasterizations, dropped blocks, duplicate footnote definitions).

Usage:
    from mdpress.lib.log import LOG, WARN, state_connectToLogger

    # Once, before the pipeline runs:
    state_connectToLogger(state)

    # Anywhere below it:
    LOG("Rendering document...", level=1)
    LOG("Segmented 42 lines into 17 blocks", level=3)
    WARN("Rasterizing /assets/math-widget-3-9.png failed, rendering natively")

Library callers that never connect a state get warnings only.
"""

import sys
from contextvars import ContextVar
from typing import Any, Optional

from loguru import logger

# ProgramState of the running pipeline, None outside the CLI
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

# mdpress log line: time │ level │ caller @ line ║ message
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <7}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make ``state.verbosity`` govern LOG() calls in the current context.

    Args:
        state: ProgramState (anything with a ``verbosity`` attribute)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log a progress message when the connected verbosity allows it.

    Args:
        message: Text to log
        level: Verbosity needed (1 normal, 2 verbose, 3 debug)
        **kwargs: Passed on to loguru
    """
    state = _program_state.get()

    if state is not None and getattr(state, 'verbosity', 0) >= level:
        logger.opt(depth=1).debug(message, **kwargs)


def WARN(message: str, **kwargs: Any) -> None:
    """
    Log a warning regardless of verbosity.

    The render continues, but its output differs from what the document
    asked for.
    """
    logger.opt(depth=1).warning(message, **kwargs)
