"""Utility functions shared across peopledb components."""

from peopledb.core.utils.checks import first_not_none, ifnone

__all__ = ["first_not_none", "ifnone"]
