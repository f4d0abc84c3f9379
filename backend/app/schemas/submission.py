from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.assignment import AssignmentSummaryOut
from app.schemas.audit import PaginationOut


class SubmissionSummaryOut(BaseModel):
    id: str
    user_id: str = Field(alias="userId")
    course_id: str | None = Field(default=None, alias="courseId")
    course_title: str | None = Field(default=None, alias="courseTitle")
    challenge_id: str | None = Field(default=None, alias="challengeId")
    level: int
    status: str
    submitted_at: datetime = Field(alias="submittedAt")

    model_config = ConfigDict(populate_by_name=True)


class SubmissionWithAssignmentOut(SubmissionSummaryOut):
    assignment: AssignmentSummaryOut | None = None


class SubmissionPageOut(BaseModel):
    data: list[SubmissionWithAssignmentOut]
    pagination: PaginationOut


class QueueItemOut(SubmissionSummaryOut):
    assignment_status: str = Field(alias="assignmentStatus")
    version: int


class HistoryItemOut(QueueItemOut):
    evaluated_at: datetime | None = Field(default=None, alias="evaluatedAt")
