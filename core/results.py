"""
Structured results returned by the service layer.

Business-rule failures (empty cart, insufficient stock, invalid coupon,
illegal status transition, missing records) are reported as a failed
ServiceResult instead of propagating as exceptions. Unexpected errors
are logged with a traceback and reported with an opaque message.
"""
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = 'An unexpected error occurred'


class ServiceError(Exception):
    """Base class for expected business-rule failures."""
    not_found = False


class NotFoundError(ServiceError):
    """Raised when a requested record does not exist or is not visible."""
    not_found = True


@dataclass
class ServiceResult:
    success: bool
    message: str = ''
    data: Any = None
    not_found: bool = False

    @classmethod
    def ok(cls, data: Any = None, message: str = '') -> 'ServiceResult':
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, not_found: bool = False) -> 'ServiceResult':
        return cls(success=False, message=message, not_found=not_found)

    def __bool__(self) -> bool:
        return self.success


def service_boundary(
    action: str,
    expected: Tuple[Type[Exception], ...] = (ServiceError,),
) -> Callable:
    """
    Decorator converting a service function's exceptions into ServiceResults.

    The wrapped function returns the payload for a successful call (or a
    ServiceResult it built itself).

    Args:
        action: Short description used in log lines, e.g. "creating order"
        expected: Exception types that represent business failures
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs) -> ServiceResult:
            try:
                result = func(*args, **kwargs)
            except expected as e:
                logger.warning(f"Failed {action}: {e}")
                return ServiceResult.fail(
                    str(e), not_found=getattr(e, 'not_found', False)
                )
            except Exception:
                logger.exception(f"Unexpected error {action}")
                return ServiceResult.fail(UNEXPECTED_ERROR_MESSAGE)

            if isinstance(result, ServiceResult):
                return result
            return ServiceResult.ok(result)
        return wrapper
    return decorator


def failure_payload(result: ServiceResult, errors: Optional[dict] = None) -> dict:
    payload = {'success': False, 'message': result.message}
    if errors:
        payload['errors'] = errors
    return payload
