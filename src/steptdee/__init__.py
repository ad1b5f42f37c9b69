"""Daily energy expenditure (TDEE) from step counts and body metrics."""

__version__ = "0.1.0"
