"""Trading domain services."""

from .eligibility_filter import EligibilityFilter

__all__ = ["EligibilityFilter"]
