"""HR management backend: leave, timesheets, evaluations and notifications."""

__version__ = "0.1.0"
