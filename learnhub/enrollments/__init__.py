"""Course enrollments, lesson progress and enrollment statistics."""
