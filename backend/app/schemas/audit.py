from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AssignmentLogOut(BaseModel):
    id: str
    submission_id: str = Field(alias="submissionId")
    action_type: str = Field(alias="actionType")
    from_faculty_id: str | None = Field(default=None, alias="fromFacultyId")
    to_faculty_id: str | None = Field(default=None, alias="toFacultyId")
    admin_id: str | None = Field(default=None, alias="adminId")
    actor_role: str = Field(alias="actorRole")
    notes: str | None = None
    details: dict = Field(default_factory=dict)
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")

    model_config = ConfigDict(populate_by_name=True)


class AssignmentLogPageOut(BaseModel):
    data: list[AssignmentLogOut]
    pagination: PaginationOut
