from pydantic import BaseModel, ConfigDict, Field


class AvailabilityUpdate(BaseModel):
    is_available: bool = Field(alias="isAvailable")

    model_config = ConfigDict(populate_by_name=True)


class CapacityUpdate(BaseModel):
    # Range is enforced by the registry so the limit follows settings.
    max_capacity: int = Field(alias="maxCapacity")

    model_config = ConfigDict(populate_by_name=True)


class AvailabilityOut(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    is_available: bool = Field(alias="isAvailable")

    model_config = ConfigDict(populate_by_name=True)


class CapacityOut(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    max_capacity: int = Field(alias="maxCapacity")

    model_config = ConfigDict(populate_by_name=True)


class FacultyLoadOut(BaseModel):
    id: str
    name: str
    email: str
    is_available: bool
    max_capacity: int
    pending: int
    completed: int
    total: int
    current_load: int
    live_load: int
    courses: list[str] = Field(default_factory=list)


class FacultyStatsOut(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    pending: int
    in_progress: int = Field(alias="inProgress")
    evaluated: int
    total: int
    live_load: int = Field(alias="liveLoad")
    max_capacity: int = Field(alias="maxCapacity")
    is_available: bool = Field(alias="isAvailable")

    model_config = ConfigDict(populate_by_name=True)
