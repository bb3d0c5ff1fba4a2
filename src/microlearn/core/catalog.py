"""Module catalog: authoring, publishing and enrollment.

Modules start as drafts, can be edited by their owner while in draft,
and become immutable once published. There is no unpublish path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from microlearn.core.models import (
    ROLES,
    Enrollment,
    MediaUrls,
    Module,
    Profile,
    Quiz,
    media_to_record,
)
from microlearn.db.store import AttemptStore, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = ("title", "content_summary", "video_url", "pdf_url", "animated_content_url")


class ModuleStateError(Exception):
    """Module cannot change in its current state (e.g. already published)."""

    pass


class PermissionDeniedError(Exception):
    """Caller does not have the role or ownership the action needs."""

    pass


@dataclass
class ModuleView:
    """What a learner sees when opening a module."""

    module: Module
    instructor_name: str
    enrolled: bool
    quiz_id: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module.to_dict(),
            "instructor_name": self.instructor_name,
            "enrolled": self.enrolled,
            "quiz_id": self.quiz_id,
        }


# =============================================================================
# PROFILES
# =============================================================================


def create_profile(store: AttemptStore, full_name: str, role: str, email: str = "") -> Profile:
    """Register a learner or instructor profile.

    Raises:
        ValidationError: If the name is blank or the role is unknown
    """
    if role not in ROLES:
        raise ValidationError(f"Role must be one of {', '.join(ROLES)}: {role!r}")
    if not full_name or not full_name.strip():
        raise ValidationError("Please enter a full name")

    record = store.insert("profiles", {"full_name": full_name.strip(), "email": email, "role": role})
    logger.info("profile_created", profile_id=record["id"], role=role)
    return Profile.from_record(record)


def get_profile(store: AttemptStore, user_id: str) -> Profile | None:
    record = store.get("profiles", user_id)
    return Profile.from_record(record) if record else None


def require_role(store: AttemptStore, user_id: str, role: str) -> Profile:
    """Return the caller's profile if it has the given role.

    Raises:
        PermissionDeniedError: If the profile is missing or has another role
    """
    profile = get_profile(store, user_id)
    if profile is None or profile.role != role:
        raise PermissionDeniedError(f"This action requires the {role} role")
    return profile


# =============================================================================
# AUTHORING
# =============================================================================


def load_owned_module(store: AttemptStore, instructor_id: str, module_id: str) -> Module:
    record = store.get("modules", module_id)
    if record is None:
        raise NotFoundError(f"Module not found: {module_id}")
    module = Module.from_record(record)
    if module.instructor_id != instructor_id:
        raise PermissionDeniedError(f"Module {module_id} belongs to another instructor")
    return module


def create_module(
    store: AttemptStore,
    instructor_id: str,
    title: str,
    content_summary: str = "",
    media: MediaUrls | None = None,
) -> Module:
    """Save a new module as draft.

    Raises:
        ValidationError: If the title is blank
    """
    if not title or not title.strip():
        raise ValidationError("Please enter a module title")

    record = store.insert(
        "modules",
        {
            "instructor_id": instructor_id,
            "title": title.strip(),
            "content_summary": content_summary,
            "published": False,
            **media_to_record(media or MediaUrls()),
        },
    )
    logger.info("module_created", module_id=record["id"], instructor_id=instructor_id)
    return Module.from_record(record)


def update_module(
    store: AttemptStore,
    instructor_id: str,
    module_id: str,
    patch: dict[str, Any],
) -> Module:
    """Edit a draft module.

    Raises:
        NotFoundError: If the module does not exist
        PermissionDeniedError: If the caller does not own it
        ModuleStateError: If it is already published
        ValidationError: On unknown fields or a blank title
    """
    module = load_owned_module(store, instructor_id, module_id)
    if module.published:
        raise ModuleStateError(f"Module {module_id} is published and can no longer be edited")

    unknown = [k for k in patch if k not in EDITABLE_FIELDS]
    if unknown:
        raise ValidationError(f"Fields cannot be edited: {', '.join(unknown)}")
    if "title" in patch and not (patch["title"] or "").strip():
        raise ValidationError("Please enter a module title")

    record = store.update("modules", module_id, patch)
    logger.info("module_updated", module_id=module_id, fields=list(patch))
    return Module.from_record(record)


def publish_module(store: AttemptStore, instructor_id: str, module_id: str) -> Module:
    """Publish a module. Publishing twice is a no-op."""
    module = load_owned_module(store, instructor_id, module_id)
    if module.published:
        return module

    record = store.update("modules", module_id, {"published": True})
    logger.info("module_published", module_id=module_id, instructor_id=instructor_id)
    return Module.from_record(record)


# =============================================================================
# LEARNER SIDE
# =============================================================================


def list_published_modules(store: AttemptStore) -> list[tuple[Module, str]]:
    """Published modules, newest first, with their instructor's name."""
    rows = store.query("modules", {"published": True}, order_by="created_at", descending=True)
    instructor_ids = sorted({r["instructor_id"] for r in rows})
    names = {
        p["id"]: p["full_name"]
        for p in (store.query("profiles", {"id": instructor_ids}) if instructor_ids else [])
    }
    return [(Module.from_record(r), names.get(r["instructor_id"], "Unknown")) for r in rows]


def enrolled_module_ids(store: AttemptStore, learner_id: str) -> set[str]:
    return {r["module_id"] for r in store.query("enrollments", {"learner_id": learner_id})}


def enroll(store: AttemptStore, learner_id: str, module_id: str) -> Enrollment:
    """Enroll a learner in a published module.

    Raises:
        NotFoundError: If the module does not exist or is not published
        ConstraintError: If the learner is already enrolled
    """
    record = store.get("modules", module_id)
    if record is None or not record["published"]:
        raise NotFoundError(f"Module not found: {module_id}")

    enrollment = store.insert("enrollments", {"learner_id": learner_id, "module_id": module_id})
    logger.info("learner_enrolled", learner_id=learner_id, module_id=module_id)
    return Enrollment.from_record(enrollment)


def find_module_quiz(store: AttemptStore, module_id: str) -> Quiz | None:
    """The module's quiz. One per module is intended but not enforced;
    the earliest one wins."""
    rows = store.query("quizzes", {"module_id": module_id})
    return Quiz.from_record(rows[0]) if rows else None


def get_module_view(store: AttemptStore, learner_id: str, module_id: str) -> ModuleView:
    """Module content with enrollment status and quiz link.

    Raises:
        NotFoundError: If the module does not exist or is not published
    """
    record = store.get("modules", module_id)
    if record is None or not record["published"]:
        raise NotFoundError(f"Module not found: {module_id}")

    module = Module.from_record(record)
    instructor = get_profile(store, module.instructor_id)
    enrolled = bool(store.query("enrollments", {"learner_id": learner_id, "module_id": module_id}))
    quiz = find_module_quiz(store, module_id)

    return ModuleView(
        module=module,
        instructor_name=instructor.full_name if instructor else "Unknown",
        enrolled=enrolled,
        quiz_id=quiz.id if quiz else None,
    )
