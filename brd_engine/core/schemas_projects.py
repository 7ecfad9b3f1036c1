"""Pydantic schemas for project-level operations."""

from pydantic import BaseModel, Field


class CreateProjectRequest(BaseModel):
    """Request body for creating a new project."""

    name: str = Field(..., min_length=1, max_length=200, description="Project name")
    description: str | None = Field(None, description="Project description")


class UpdateProjectRequest(BaseModel):
    """Request body for renaming or re-describing a project."""

    name: str | None = Field(None, min_length=1, max_length=200, description="Project name")
    description: str | None = Field(None, description="Project description")


class ProjectResponse(BaseModel):
    """Response schema for a single project."""

    id: str = Field(..., description="Project UUID")
    name: str = Field(..., description="Project name")
    description: str | None = Field(None, description="Project description")
    created_at: str | None = Field(None, description="Creation timestamp")
    updated_at: str | None = Field(None, description="Last update timestamp")


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class ProjectStatsResponse(BaseModel):
    """Entity counts for a project."""

    total_documents: int
    processed_documents: int
    total_chunks: int
    conversations: int
    brds: int


class BrdResponse(BaseModel):
    id: str
    project_id: str
    title: str
    markdown_content: str
    created_at: str | None = None


class BrdListResponse(BaseModel):
    brds: list[BrdResponse]
    total: int
