from __future__ import annotations

import uuid


class AppError(Exception):
    def __init__(self, *, status_code: int, code: str, message: str, error_id: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.error_id = error_id or str(uuid.uuid4())


class NotFoundError(AppError):
    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            status_code=404,
            code=f"{resource}_not_found",
            message=f"{resource.replace('_', ' ').capitalize()} '{resource_id}' not found",
        )


class ConfirmationRequiredError(AppError):
    def __init__(self, action: str) -> None:
        super().__init__(
            status_code=409,
            code="confirmation_required",
            message=f"Explicit confirmation is required to {action}",
        )


class ConflictError(AppError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(status_code=409, code=code, message=message)


class PersistenceError(AppError):
    def __init__(self, message: str = "Change could not be saved and was reverted") -> None:
        super().__init__(status_code=503, code="persistence_failed", message=message)


class SessionRequiredError(AppError):
    def __init__(self, message: str = "A valid session is required") -> None:
        super().__init__(status_code=401, code="session_required", message=message)


class FilterValueError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(status_code=400, code="invalid_filter_value", message=message)


class BadRequestError(AppError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(status_code=400, code=code, message=message)
