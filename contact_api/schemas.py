"""
Pydantic schemas for request/response validation.

This module contains:
- Request models for incoming data validation
- Response models for API responses
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Pydantic Request Models
# =============================================================================

class ContactCreate(BaseModel):
    """
    Pydantic model for validating contact-form submissions.

    All three fields are required and must be non-empty strings.
    No further format checks are applied (email is not verified).
    Unknown fields are ignored.
    """
    name: str = Field(..., min_length=1, description="Submitter name")
    email: str = Field(..., min_length=1, description="Submitter email address")
    message: str = Field(..., min_length=1, description="Message body")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Ada Lovelace",
                    "email": "ada@example.com",
                    "message": "Hello there"
                }
            ]
        }
    }


# =============================================================================
# Pydantic Response Models
# =============================================================================

class ContactCreatedResponse(BaseModel):
    """Response model for a stored submission."""
    message: str = Field(default="Contact saved successfully", description="Confirmation message")
    id: Optional[int] = Field(None, description="Generated contact id (null if the store did not report it)")


class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class ContactResponse(BaseModel):
    """A single stored contact as returned by GET /contacts."""
    id: int = Field(..., description="Contact id")
    name: str = Field(..., description="Submitter name")
    email: str = Field(..., description="Submitter email address")
    message: str = Field(..., description="Message body")
    created_at: datetime = Field(..., description="Creation time")


class Pagination(BaseModel):
    """Pagination block for GET /contacts."""
    current_page: int = Field(..., ge=1, description="Page returned (1-indexed)")
    total_pages: int = Field(..., ge=0, description="ceil(total_items / items_per_page)")
    total_items: int = Field(..., ge=0, description="Total stored contacts")
    items_per_page: int = Field(..., ge=1, le=100, description="Page size used")


class ContactsListResponse(BaseModel):
    """
    Response model for GET /contacts.

    Contains:
    - contacts: one page of contacts, most recent first
    - pagination: page position and totals
    """
    contacts: list[ContactResponse] = Field(
        default_factory=list,
        description="Contacts on this page"
    )
    pagination: Pagination


class HealthResponse(BaseModel):
    """Response model for GET /health."""
    status: str = Field(default="ok", description="Health status")
    timestamp: datetime = Field(..., description="Current server time")


class ReadinessResponse(BaseModel):
    """Response model for GET /health/ready."""
    status: str = Field(..., description="Readiness status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
