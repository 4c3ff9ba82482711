"""Error Builders

Ergonomic constructors for typed errors. Each builder returns an
`Err[AppError]` so engines can `return` it directly from a Result-typed
function.
"""
from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    meta = {"field": field, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata={k: v for k, v in meta.items() if v is not None},
    ))


def out_of_range(
    field: str,
    value: int | float,
    min_val: int | float | None = None,
    max_val: int | float | None = None,
    origin: str = "",
) -> Err[AppError]:
    bounds = []
    if min_val is not None:
        bounds.append(f">= {min_val}")
    if max_val is not None:
        bounds.append(f"<= {max_val}")
    return validation_error(
        f"Value {value} for '{field}' out of range ({', '.join(bounds)})",
        code=ErrorCode.E2003_OUT_OF_RANGE,
        field=field,
        value=value,
        origin=origin,
    )


def unknown_groups(group_ids: list[str], origin: str = "") -> Err[AppError]:
    return validation_error(
        f"Unknown content group(s): {', '.join(group_ids)}",
        code=ErrorCode.E2005_CONSTRAINT_VIOLATION,
        field="groups",
        unknown=group_ids,
        origin=origin,
    )


# =============================================================================
# Storage / Lookup Errors (E4xxx)
# =============================================================================

def not_found(entity: str, identifier: str | None = None, origin: str = "") -> Err[AppError]:
    msg = f"{entity} not found"
    if identifier is not None:
        msg = f"{entity} '{identifier}' not found"
    return Err(AppError(
        code=ErrorCode.E4010_NOT_FOUND,
        message=msg,
        context=ErrorContext(origin=origin),
        metadata={"entity": entity, "id": identifier} if identifier is not None else {"entity": entity},
    ))


def transaction_failed(reason: str = "", origin: str = "", cause: Exception | None = None) -> Err[AppError]:
    msg = "Transaction failed"
    if reason:
        msg += f": {reason}"
    return Err(AppError(
        code=ErrorCode.E4003_TRANSACTION_FAILED,
        message=msg,
        context=ErrorContext(origin=origin),
        cause=cause,
    ))


# =============================================================================
# Practice / Business Errors (E5xxx)
# =============================================================================

def business_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E5000_BUSINESS_GENERIC,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
    ))


def state_conflict(
    entity: str, current_state: str, required_state: str, origin: str = ""
) -> Err[AppError]:
    return business_error(
        f"{entity} is in '{current_state}' state, requires '{required_state}'",
        code=ErrorCode.E5002_STATE_CONFLICT,
        entity=entity,
        current_state=current_state,
        required_state=required_state,
        origin=origin,
    )


def empty_selection(origin: str = "") -> Err[AppError]:
    return business_error(
        "Select at least one group to start practicing",
        code=ErrorCode.E5030_EMPTY_SELECTION,
        origin=origin,
    )


def malformed_question(prompt: str, reason: str, origin: str = "") -> Err[AppError]:
    return business_error(
        f"Cannot build question for '{prompt}': {reason}",
        code=ErrorCode.E5031_MALFORMED_QUESTION,
        prompt=prompt,
        reason=reason,
        origin=origin,
    )
