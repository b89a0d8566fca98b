"""
Shared vocabulary: ticket priorities and statuses, validation rules, and the
settings every new project starts with.
"""
import copy
import re
from typing import Any, Dict, List

# Ticket progress is an integer percentage
PROGRESS_MIN = 0
PROGRESS_MAX = 100

PRIORITY_DEFINITIONS: List[Dict[str, str]] = [
    {"value": "high", "label": "High", "color": "#c62828"},
    {"value": "medium", "label": "Medium", "color": "#ef6c00"},
    {"value": "low", "label": "Low", "color": "#2e7d32"},
]

STATUS_DEFINITIONS: List[Dict[str, str]] = [
    {"value": "todo", "label": "To do", "color": "#666"},
    {"value": "in_progress", "label": "In progress", "color": "#1976d2"},
    {"value": "review", "label": "In review", "color": "#f57c00"},
    {"value": "done", "label": "Done", "color": "#388e3c"},
]

DEFAULT_CATEGORIES: List[str] = [
    "Planning",
    "Development",
    "Design",
    "Testing",
    "Documentation",
    "Meeting",
    "Other",
]

# === Validation rules ===
DISPLAY_NAME_MIN_LENGTH = 1
DISPLAY_NAME_MAX_LENGTH = 50

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[A-Za-z\d@$!%*?&_-]+$")
PASSWORD_RULE_MESSAGE = (
    "Password must be 8-128 characters and contain upper case, lower case and a digit "
    "(allowed symbols: @$!%*?&_-)"
)

# Application-wide settings document (settings.json)
DEFAULT_SYSTEM_SETTINGS: Dict[str, Any] = {
    "appName": "NullTasker",
    "projectName": "NullTasker Project",
    "projectDescription": "Team task tracking made simple.",
    "categories": DEFAULT_CATEGORIES,
    "notifications": {
        "email": True,
        "desktop": False,
        "taskReminder": True,
    },
    "display": {
        "theme": "light",
        "language": "en",
        "tasksPerPage": 20,
    },
}


def default_project_settings() -> Dict[str, Any]:
    """Fresh copy of the settings a newly created project starts with."""
    return {
        "categories": list(DEFAULT_CATEGORIES),
        "priorities": copy.deepcopy(PRIORITY_DEFINITIONS),
        "statuses": copy.deepcopy(STATUS_DEFINITIONS),
        "notifications": True,
        "autoAssign": False,
    }


def default_system_settings() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_SYSTEM_SETTINGS)


def validate_password_rules(password: str) -> str:
    """Raise ValueError unless the password meets the complexity policy."""
    if not (PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH):
        raise ValueError(PASSWORD_RULE_MESSAGE)
    if not PASSWORD_PATTERN.match(password):
        raise ValueError(PASSWORD_RULE_MESSAGE)
    return password
