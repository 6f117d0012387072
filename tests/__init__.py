"""
Mentora LMS Test Suite

Tests for:
- Bearer token verification and role gating
- Pagination and search conventions
- Users, courses, enrollments, assignments, submissions and feedback
- Utility endpoints (statistics, upload signatures, payment intents)
- Failure modes (store errors, unacknowledged writes, malformed input)
"""
