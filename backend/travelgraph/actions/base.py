# backend/travelgraph/actions/base.py
"""
Action boundary helpers.

Every public action returns an ``ActionResult``. Domain exceptions become
failed results carrying their message and code; store failures become a
generic failure and are logged with the traceback.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import DomainException, RepositoryException, ServiceException
from ..schemas.results import ActionResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


def run_action(
    action: str,
    func: Callable[[], T],
    message: str = "",
    on_success: Optional[Callable[[T], str]] = None,
) -> ActionResult[T]:
    """
    Call ``func`` and wrap its return value.

    ``on_success`` derives the message from the result when it depends on
    the outcome (for example auto-accepted vs. sent).
    """
    try:
        data = func()
    except ServiceException as e:
        logger.exception(f"Action {action} failed in the store: {e.message}")
        return ActionResult.fail(GENERIC_FAILURE_MESSAGE, ServiceException.default_code)
    except DomainException as e:
        logger.info(f"Action {action} refused: {e.code} {e.message}")
        return ActionResult.fail(e.message, e.code)
    except (RepositoryException, SQLAlchemyError):
        logger.exception(f"Action {action} failed in the store")
        return ActionResult.fail(GENERIC_FAILURE_MESSAGE, ServiceException.default_code)

    if on_success is not None:
        message = on_success(data)
    return ActionResult.ok(message, data)
