from app.models.assignment import AssignmentStatus, SubmissionAssignment  # noqa: F401
from app.models.assignment_log import AssignmentAction, AssignmentLog  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.submission import Submission  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
