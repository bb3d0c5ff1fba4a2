"""Core grading and analytics logic.

Modules:
- models: Domain records (Profile, Module, Enrollment, Quiz, Question, QuizAttempt)
- grading: Answer-set grading and the pass threshold
- quiz_session: Quiz-taking state machine producing attempt records
- progress: Per-learner completion and average score
- leaderboard: Platform-wide top-10 ranking
- instructor_analytics: Per-instructor cohort statistics
- catalog: Module authoring, publishing and enrollment
- question_source: Question generation and the quiz builder
"""

__all__ = [
    "models",
    "grading",
    "quiz_session",
    "progress",
    "leaderboard",
    "instructor_analytics",
    "catalog",
    "question_source",
]
