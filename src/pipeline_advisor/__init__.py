"""Pipeline Advisor: pick a CI/CD pipeline type and its parameters from repository evidence."""

__version__ = "1.0.0"
