"""
coursesync: client-side state synchronization for a course-scheduling tool.

Keeps the course list of exactly one data source (snapshot archive or live
feed), the user's persisted course selection, the time-slot filter and the
loading flag consistent with each other.
"""

from coursesync.session import CourseSyncSession

__all__ = ["CourseSyncSession"]
