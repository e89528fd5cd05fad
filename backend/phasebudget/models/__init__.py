from phasebudget.models.worker import Worker
from phasebudget.models.project import Project, Milestone, MilestoneMember, Task
from phasebudget.models.wage_config import WageConfig
from phasebudget.models.attendance import Attendance

__all__ = [
    "Worker",
    "Project",
    "Milestone",
    "MilestoneMember",
    "Task",
    "WageConfig",
    "Attendance",
]
