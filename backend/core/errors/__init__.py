"""Result-based Error Handling

    from core.errors import Ok, Result, AppError, empty_selection

    def resolve(groups) -> Result[ItemSet, AppError]:
        if not groups:
            return empty_selection(origin="content_catalog")
        return Ok(...)

    match resolve(groups):
        case Ok(items):
            ...
        case Err(error):
            log.warning(error.message, code=error.code.name)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
)

from .builders import (
    validation_error,
    out_of_range,
    unknown_groups,
    not_found,
    transaction_failed,
    business_error,
    state_conflict,
    empty_selection,
    malformed_question,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    result_to_response,
    raise_error,
    raise_result,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    "validation_error",
    "out_of_range",
    "unknown_groups",
    "not_found",
    "transaction_failed",
    "business_error",
    "state_conflict",
    "empty_selection",
    "malformed_question",
    "AppErrorException",
    "register_error_handlers",
    "result_to_response",
    "raise_error",
    "raise_result",
]
