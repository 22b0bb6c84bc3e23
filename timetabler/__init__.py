"""timetabler - greedy school timetable generation with teacher workload reports."""

from .catalog import resolve_subjects, is_subject_available
from .grid import SlotGrid
from .heuristic import TimetableGenerator, plan_timetable
from .workload import analyze
from .store import TimetableStore
from .service import TimetableService, TimetableQuery
from .errors import TimetableError, ValidationError, ConflictError, NotFoundError, PersistenceError
from .cli import app as cli_app

__all__ = [
    # Catalog and grid
    "resolve_subjects",
    "is_subject_available",
    "SlotGrid",
    # Generation
    "TimetableGenerator",
    "plan_timetable",
    "analyze",
    # Service
    "TimetableStore",
    "TimetableService",
    "TimetableQuery",
    # Errors
    "TimetableError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "PersistenceError",
    # CLI
    "cli_app",
]
