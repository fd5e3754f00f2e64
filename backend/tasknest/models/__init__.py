from tasknest.models.task import TaskRecord
from tasknest.models.user import User

__all__ = ["TaskRecord", "User"]
