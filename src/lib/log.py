"""
Centralized logging using Loguru with context-aware verbosity.

LOG() respects the verbosity of whatever state object was last connected
with state_connectToLogger(): the CLI connects its ProgramState, a library
caller may connect a DocumentCompiler (which carries a verbosity as well).
Nothing is logged while no state is connected.

Usage:
    from mdplus.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)
    LOG("Compiling page.md", level=1)
    LOG("DivBlock identified at line 12", level=2)
    LOG("Shield md#3 resolved", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

# Context variable to hold the connected state
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a state object to the logging context.

    Args:
        state: Any object with a 'verbosity' attribute

    Example:
        def sources_compile(inputstate: ProgramState) -> ProgramState:
            state = inputstate.copy()
            state_connectToLogger(state)
            LOG("Compiling sources...", level=1)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if the connected state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=trace)
        **kwargs: Additional loguru metadata

    Example:
        LOG("Include expanded: intro.md", level=2)
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)
