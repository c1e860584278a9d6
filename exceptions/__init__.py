"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,

    # Files
    FileReadError,
    FileTooLargeError,
    EmptyFeedError,

    # Mapping
    MissingRequiredFieldsError,
    CustomFieldNotFoundError,

    # Schema
    DuplicateFieldNameError,
    ProtectedFieldError,
    FieldNotFoundError,
    DuplicateCategoryError,
    CategoryMappingNotFoundError,

    # Workflow
    InvalidStageTransitionError,
    WorkflowNotFoundError,
    SnapshotNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",

    # Files
    "FileReadError",
    "FileTooLargeError",
    "EmptyFeedError",

    # Mapping
    "MissingRequiredFieldsError",
    "CustomFieldNotFoundError",

    # Schema
    "DuplicateFieldNameError",
    "ProtectedFieldError",
    "FieldNotFoundError",
    "DuplicateCategoryError",
    "CategoryMappingNotFoundError",

    # Workflow
    "InvalidStageTransitionError",
    "WorkflowNotFoundError",
    "SnapshotNotFoundError",
]
