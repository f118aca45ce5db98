from fastapi.responses import JSONResponse

from backend.errors import AppError, ValidationError


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "data": data if data is not None else {},
            "error": None,
            "message": message,
        }
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        }
    )


def app_error_response(exc: AppError):
    """Render an AppError; validation errors carry their field messages in data"""
    data = {"fields": exc.field_errors} if isinstance(exc, ValidationError) else None
    return error_response(exc.error_code, status=exc.status, message=exc.message, data=data)
