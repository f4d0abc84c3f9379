from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ManualAssignRequest(BaseModel):
    submission_id: str = Field(alias="submissionId", min_length=1, max_length=100)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)
    notes: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True)


class ReassignRequest(BaseModel):
    submission_id: str = Field(alias="submissionId", min_length=1, max_length=100)
    new_faculty_id: str = Field(alias="newFacultyId", min_length=1, max_length=36)
    expected_version: int | None = Field(default=None, alias="expectedVersion", ge=1)
    notes: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(populate_by_name=True)


class RedistributeRequest(BaseModel):
    from_faculty_id: str = Field(alias="fromFacultyId", min_length=1, max_length=36)

    model_config = ConfigDict(populate_by_name=True)


class BulkAssignRequest(BaseModel):
    submission_ids: list[str] = Field(alias="submissionIds", min_length=1, max_length=500)
    faculty_id: str = Field(alias="facultyId", min_length=1, max_length=36)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("submission_ids")
    @classmethod
    def strip_submission_ids(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("submissionIds must contain at least one id")
        return cleaned


class AutoAssignOut(BaseModel):
    assigned_count: int = Field(alias="assignedCount")
    skipped: int
    message: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class ManualAssignOut(BaseModel):
    submission_id: str = Field(alias="submissionId")
    faculty_id: str = Field(alias="facultyId")
    from_faculty_id: str | None = Field(default=None, alias="fromFacultyId")
    version: int

    model_config = ConfigDict(populate_by_name=True)


class ReassignOut(BaseModel):
    submission_id: str = Field(alias="submissionId")
    from_faculty_id: str = Field(alias="fromFacultyId")
    new_faculty_id: str = Field(alias="newFacultyId")
    version: int

    model_config = ConfigDict(populate_by_name=True)


class RedistributeOut(BaseModel):
    redistributed_count: int = Field(alias="redistributedCount")
    skipped: int
    message: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class BulkAssignError(BaseModel):
    submission_id: str = Field(alias="submissionId")
    reason: str

    model_config = ConfigDict(populate_by_name=True)


class BulkAssignOut(BaseModel):
    assigned: int
    skipped: int
    assigned_ids: list[str] = Field(default_factory=list, alias="assignedIds")
    errors: list[BulkAssignError] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ReviewStateOut(BaseModel):
    submission_id: str = Field(alias="submissionId")
    faculty_id: str = Field(alias="facultyId")
    status: str
    version: int
    locked_by: str | None = Field(default=None, alias="lockedBy")

    model_config = ConfigDict(populate_by_name=True)


class CompleteReviewRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class AssignmentSummaryOut(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    faculty_name: str | None = Field(default=None, alias="facultyName")
    status: str
    assigned_at: datetime = Field(alias="assignedAt")
    version: int
    locked_by: str | None = Field(default=None, alias="lockedBy")
    locked_at: datetime | None = Field(default=None, alias="lockedAt")
    reallocation_count: int = Field(alias="reallocationCount")

    model_config = ConfigDict(populate_by_name=True)


class ConsistencyRowOut(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    name: str
    cached_load: int = Field(alias="cachedLoad")
    live_load: int = Field(alias="liveLoad")
    max_capacity: int = Field(alias="maxCapacity")
    cache_drift: int = Field(alias="cacheDrift")
    over_capacity: bool = Field(alias="overCapacity")

    model_config = ConfigDict(populate_by_name=True)
