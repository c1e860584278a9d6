"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can return them unchanged.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SCHEMA_FIELD_PROTECTED")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


# ===================
# FILE ERRORS
# ===================

class FileReadError(AppError):
    """Uploaded file could not be read."""

    def __init__(self, file_name: str, reason: str = ""):
        super().__init__(
            code="FILE_READ_ERROR",
            message="Error reading file",
            status_code=400,
            details={"file_name": file_name, "reason": reason}
        )


class FileTooLargeError(AppError):
    """Uploaded file exceeds the configured size limit."""

    def __init__(self, file_name: str, size_bytes: int, limit_bytes: int):
        super().__init__(
            code="FILE_TOO_LARGE",
            message=f"File exceeds the {round(limit_bytes / (1024 * 1024), 2)} MB upload limit",
            status_code=413,
            details={
                "file_name": file_name,
                "size_bytes": size_bytes,
                "limit_bytes": limit_bytes,
            }
        )


class EmptyFeedError(ValidationError):
    """Parsing produced no headers and no rows."""

    def __init__(self, file_name: str, file_type: str):
        super().__init__(
            code="FEED_EMPTY",
            message="Error parsing file. Please check the file format and try again.",
            details={"file_name": file_name, "file_type": file_type}
        )


# ===================
# MAPPING ERRORS
# ===================

class MissingRequiredFieldsError(ValidationError):
    """Required target fields have no source column."""

    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            code="MAPPING_MISSING_REQUIRED_FIELDS",
            message=f"Please map required fields: {', '.join(missing_fields)}",
            details={"missing_fields": list(missing_fields)}
        )


class CustomFieldNotFoundError(NotFoundError):
    """Custom field mapping not found."""

    def __init__(self, custom_field_id: str):
        super().__init__(
            resource="Custom field",
            identifier=custom_field_id,
            code="CUSTOM_FIELD_NOT_FOUND"
        )


# ===================
# SCHEMA ERRORS
# ===================

class DuplicateFieldNameError(DuplicateError):
    """Schema already has a field with this name."""

    def __init__(self, name: str):
        super().__init__(
            resource="Schema field",
            field="name",
            value=name
        )
        self.code = "SCHEMA_FIELD_NAME_EXISTS"


class ProtectedFieldError(ValidationError):
    """Core required fields cannot be removed, renamed or made optional."""

    def __init__(self, name: str, operation: str):
        super().__init__(
            code="SCHEMA_FIELD_PROTECTED",
            message=f"Field '{name}' is a required core field and cannot be {operation}",
            details={"field": name, "operation": operation}
        )


class FieldNotFoundError(NotFoundError):
    """Schema field not found."""

    def __init__(self, name: str):
        super().__init__(
            resource="Schema field",
            identifier=name,
            code="SCHEMA_FIELD_NOT_FOUND"
        )


class DuplicateCategoryError(DuplicateError):
    """Category mapping already exists for this source category."""

    def __init__(self, source_category: str):
        super().__init__(
            resource="Category",
            field="source_category",
            value=source_category
        )


class CategoryMappingNotFoundError(NotFoundError):
    """No category mapping for this source category."""

    def __init__(self, source_category: str):
        super().__init__(
            resource="Category mapping",
            identifier=source_category,
            code="CATEGORY_MAPPING_NOT_FOUND"
        )


# ===================
# WORKFLOW ERRORS
# ===================

class InvalidStageTransitionError(ValidationError):
    """Workflow cannot move to the requested stage."""

    def __init__(self, current_stage: str, new_stage: str, reason: str):
        super().__init__(
            code="INVALID_STAGE_TRANSITION",
            message=f"Cannot transition from {current_stage} to {new_stage}",
            details={
                "current_stage": current_stage,
                "new_stage": new_stage,
                "reason": reason
            }
        )


class WorkflowNotFoundError(NotFoundError):
    """Workflow session not found or expired."""

    def __init__(self, workflow_id: str):
        super().__init__(
            resource="Workflow",
            identifier=workflow_id,
            code="WORKFLOW_NOT_FOUND"
        )


class SnapshotNotFoundError(NotFoundError):
    """History snapshot not found."""

    def __init__(self, kind: str, snapshot_id: str):
        super().__init__(
            resource=f"{kind.capitalize()} snapshot",
            identifier=snapshot_id,
            code="SNAPSHOT_NOT_FOUND"
        )
