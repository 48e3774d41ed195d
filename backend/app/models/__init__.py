from app.models.assignment import Assignment  # noqa: F401
from app.models.task import Task  # noqa: F401
from app.models.user import User  # noqa: F401
