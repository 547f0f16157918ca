"""
API Module - Black Box Interface

Purpose: Typed options for the public client operations
Interface: CreateSessionOptions, GetSessionOptions, GetAllSessionsOptions,
           SetBucketOptions, TouchSessionOptions
Hidden: Validation rules
"""

from .models import (
    CreateSessionOptions,
    GetAllSessionsOptions,
    GetSessionOptions,
    OperationOptions,
    SetBucketOptions,
    TouchSessionOptions,
)

__all__ = [
    "CreateSessionOptions",
    "GetAllSessionsOptions",
    "GetSessionOptions",
    "OperationOptions",
    "SetBucketOptions",
    "TouchSessionOptions",
]
