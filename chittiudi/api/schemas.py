"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the mobile app and the service.

Error Codes:
- VALIDATION_ERROR: Input rejected (missing name, limit reached, duplicate...)
- PRECONDITION_FAILED: Not enough entries or members to juggle
- FORBIDDEN: Requester is not the owner (or not a member)
- BOWL_NOT_FOUND: Bowl does not exist
- CONFLICT: Bowl kept changing underneath; try again
- STORE_UNAVAILABLE: Storage failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field, field_validator

from ..engine_core.bowl import Bowl, BowlType


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    FORBIDDEN = "FORBIDDEN"
    BOWL_NOT_FOUND = "BOWL_NOT_FOUND"
    CONFLICT = "CONFLICT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class MemberInfo(BaseModel):
    """A member of a bowl."""
    id: str
    name: str

    model_config = {"from_attributes": True}


class EntryInfo(BaseModel):
    """One entry in a bowl."""
    id: str
    text: str
    user_id: str
    user_name: str

    model_config = {"from_attributes": True}


class BowlInfo(BaseModel):
    """Full bowl for display."""
    id: str
    name: str
    description: str = ""
    owner_id: str
    owner_name: str
    type: BowlType
    members: list[MemberInfo] = Field(default_factory=list)
    entries: list[EntryInfo] = Field(default_factory=list)
    member_limit: int = Field(0, description="0 means unbounded (not enforced)")
    input_count: int = Field(0, description="Max entries per non-owner member; 0 means unbounded")
    output: Optional[str] = Field(None, description="Latest juggle result; absent until first juggle")
    revision: int = 0

    @classmethod
    def from_bowl(cls, bowl: Bowl) -> "BowlInfo":
        return cls(
            id=bowl.id,
            name=bowl.name,
            description=bowl.description,
            owner_id=bowl.owner_id,
            owner_name=bowl.owner_name,
            type=bowl.type,
            members=[MemberInfo.model_validate(m) for m in bowl.list_members],
            entries=[EntryInfo.model_validate(e) for e in bowl.list_entries],
            member_limit=bowl.member_limit,
            input_count=bowl.input_count,
            output=bowl.output,
            revision=bowl.revision,
        )


# =============================================================================
# Requests
# =============================================================================

class CreateBowlRequest(BaseModel):
    """Body of POST /api/v1/bowls."""
    name: str
    description: str = ""
    type: BowlType = BowlType.PICK_ONE_DISCARD
    member_limit: Any = Field(0, description="Non-numeric values are treated as 0")
    input_count: Any = Field(0, description="Non-numeric values are treated as 0")

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, value: Any) -> BowlType:
        """Accept the type by value or by name, in any case."""
        return BowlType.parse(value)


class SubmitEntryRequest(BaseModel):
    """Body of POST /api/v1/bowls/{id}/entries."""
    text: str


# =============================================================================
# Responses
# =============================================================================

class BowlListResponse(BaseModel):
    bowls: list[BowlInfo]
    count: int


class ResolveResponse(BaseModel):
    """Result of juggling a bowl."""
    output: str
    bowl: BowlInfo


class ShareResponse(BaseModel):
    url: str
    message: str
    title: str


class DeleteBowlResponse(BaseModel):
    success: bool
    bowl_id: str


class ErrorResponse(BaseModel):
    """Returned for any 4xx or 5xx status."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    env: str
