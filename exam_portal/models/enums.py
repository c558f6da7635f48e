"""Centralized Enum Definitions"""

import enum


class RegistrationMode(str, enum.Enum):
    """Numbering strategy in force for a school's registrations"""
    REGULAR = "regular"  # window open: alphabetical recompute
    LATE = "late"        # window closed: incremental append
