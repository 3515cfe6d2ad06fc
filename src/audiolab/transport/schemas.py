"""Request models and the JSON error envelope."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, HttpUrl, ValidationError, field_validator

CODE_INTERNAL = 7000
CODE_VALIDATION = 7001
CODE_PDF = 7002
CODE_BLOB_WRITE = 7003
CODE_METADATA_WRITE = 7004
CODE_GENERATION_DISABLED = 7005


class ApiError(Exception):
    """An error that maps directly onto an HTTP response."""

    def __init__(
        self,
        message: str,
        status: int = 500,
        code: int = CODE_INTERNAL,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    def build_response(self) -> list[dict[str, Any]]:
        if self.details:
            return self.details
        return [{"code": self.code, "message": self.message}]


class ScriptCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    url: HttpUrl
    personas: list[str] = Field(min_length=1)

    @field_validator("personas")
    @classmethod
    def _strip_personas(cls, value: list[str]) -> list[str]:
        personas = [persona.strip() for persona in value]
        if any(not persona for persona in personas):
            raise ValueError("persona names must not be blank")
        return personas


def validation_error(exc: ValidationError) -> ApiError:
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "body"
        details.append({"code": CODE_VALIDATION, "message": f"{location}: {err.get('msg')}"})
    return ApiError("Invalid request body", 400, CODE_VALIDATION, details=details)


def error_body(errors: list[dict[str, Any]]) -> dict[str, Any]:
    return {"success": False, "errors": errors}


class ScriptResult(BaseModel):
    id: int
    name: str
    r2_file_link: str
    created_at: str
    personas: str | None = Field(description="JSON-encoded list of persona names")


class ErrorItem(BaseModel):
    code: int
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    errors: list[ErrorItem]


class ScriptCreateResponse(BaseModel):
    success: bool = True
    result: ScriptResult


class ScriptListResponse(BaseModel):
    success: bool = True
    result: list[ScriptResult]
