"""Courses module: tracked courses and their lifecycle."""

from questlog.courses.models import Course
from questlog.courses.service import CourseService, CourseUpdateResult


__all__ = ["Course", "CourseService", "CourseUpdateResult"]
