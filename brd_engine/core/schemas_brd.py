"""Pydantic schemas for BRD generation."""

from uuid import UUID

from pydantic import BaseModel, Field


class GenerateBrdRequest(BaseModel):
    """Request body for generating a BRD download."""

    project_id: UUID = Field(..., description="Project UUID")
    title: str = Field("Business Requirements Document", description="Document title")
    save: bool = Field(False, description="Persist the generated BRD on the project")


class BrdPreviewResponse(BaseModel):
    success: bool = True
    markdown: str
    brd_id: str | None = Field(None, description="Saved BRD id when save=true")
