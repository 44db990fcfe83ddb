from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel


class AppError(Exception):
    """Базовая ошибка приложения, которая превращается в JSON-ответ."""

    status_code = status.HTTP_400_BAD_REQUEST

    def to_dict(self) -> dict:
        return {"errors": {"status": self.status_code, "detail": str(self)}}


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    title = "Not Found!"
    detail = "Unable to locate the resource with the given information."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)

    def to_dict(self) -> dict:
        return {
            "errors": {
                "status": self.status_code,
                "title": self.title,
                "detail": str(self),
            }
        }


class UserNotFound(NotFoundError):
    title = "User not Found!"
    detail = "Unable to locate the user with the given information."


class FriendRequestNotFound(NotFoundError):
    title = "Friend Request not Found!"
    detail = "Unable to locate the friend request with the given information."


class EmailAlreadyRegistered(AppError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, email: str):
        self.email = email
        super().__init__("Email already registered")


class FriendshipAlreadyConfirmed(AppError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, friendship_id: int):
        self.friendship_id = friendship_id
        super().__init__(f"Friendship {friendship_id} is already confirmed")


class ValidationFailed(AppError):
    """Ошибка валидации, привязанная к конкретному полю запроса."""

    status_code = 422

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_dict(self) -> dict:
        return {"errors": {"meta": {self.field: self.message}}}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def required_body_fields(request: Request) -> list[str]:
    """Обязательные поля тела запроса для маршрута, который обрабатывает request."""
    route = request.scope.get("route")
    dependant = getattr(route, "dependant", None)
    fields: list[str] = []
    for param in getattr(dependant, "body_params", []):
        model = getattr(param.field_info, "annotation", None)
        if isinstance(model, type) and issubclass(model, BaseModel):
            fields.extend(
                info.alias or name
                for name, info in model.model_fields.items()
                if info.is_required()
            )
        else:
            fields.append(param.alias)
    return fields


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Приводит ошибки pydantic к виду {"errors": {"meta": {<поле>: <сообщение>}}}.
    """
    meta: dict[str, str] = {}
    for error in exc.errors():
        loc = tuple(error.get("loc") or ())
        message = error.get("msg", "Invalid value")
        if loc == ("body",):
            # Тело запроса отсутствует целиком: ошибка на каждое обязательное поле
            for field in required_body_fields(request) or ["body"]:
                meta.setdefault(field, message)
            continue
        field = str(loc[-1]) if loc else "body"
        meta.setdefault(field, message)
    logger.warning(f"{request.method} {request.url.path} -> 422: {sorted(meta)}")
    return JSONResponse(
        status_code=422,
        content={"errors": {"meta": meta}},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Регистрирует обработчики ошибок приложения."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
