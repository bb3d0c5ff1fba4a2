"""Module catalog and quiz authoring endpoints."""

import asyncio

from fastapi import APIRouter, Depends, status

from microlearn.core.catalog import (
    ModuleStateError,
    PermissionDeniedError,
    create_module,
    enroll,
    enrolled_module_ids,
    get_module_view,
    list_published_modules,
    load_owned_module,
    publish_module,
    update_module,
)
from microlearn.core.models import MediaUrls, Profile, media_to_record
from microlearn.core.question_source import QuestionDraft, QuestionSource, QuizBuilder
from microlearn.db.store import AttemptStore, StoreError
from microlearn.web.deps import (
    get_current_user,
    get_instructor,
    get_learner,
    get_question_source_dep,
    get_store,
    to_http_exception,
)
from microlearn.web.schemas import (
    CatalogModuleResponse,
    EnrollmentResponse,
    ModuleCreate,
    ModuleListResponse,
    ModuleResponse,
    ModuleUpdate,
    ModuleViewResponse,
    QuestionDraftSchema,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizSaveRequest,
    QuizSaveResponse,
)

router = APIRouter(prefix="/api/modules", tags=["modules"])

DOMAIN_ERRORS = (StoreError, ModuleStateError, PermissionDeniedError)


# =============================================================================
# CATALOG
# =============================================================================


@router.get("", response_model=ModuleListResponse)
async def list_modules(
    user: Profile = Depends(get_current_user),
    store: AttemptStore = Depends(get_store),
) -> ModuleListResponse:
    """List published modules, newest first."""
    try:
        modules = list_published_modules(store)
        enrolled = enrolled_module_ids(store, user.id)
    except StoreError as e:
        raise to_http_exception(e) from e

    items = [
        CatalogModuleResponse(
            **module.to_dict(),
            instructor_name=instructor_name,
            enrolled=module.id in enrolled,
        )
        for module, instructor_name in modules
    ]
    return ModuleListResponse(modules=items, count=len(items))


@router.get("/{module_id}", response_model=ModuleViewResponse)
async def view_module(
    module_id: str,
    user: Profile = Depends(get_current_user),
    store: AttemptStore = Depends(get_store),
) -> ModuleViewResponse:
    """Open a published module with enrollment status and quiz link."""
    try:
        view = get_module_view(store, user.id, module_id)
    except StoreError as e:
        raise to_http_exception(e) from e
    return ModuleViewResponse(**view.to_dict())


@router.post(
    "/{module_id}/enroll",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enroll_in_module(
    module_id: str,
    learner: Profile = Depends(get_learner),
    store: AttemptStore = Depends(get_store),
) -> EnrollmentResponse:
    """Enroll the calling learner. Enrolling twice is a conflict."""
    try:
        enrollment = enroll(store, learner.id, module_id)
    except StoreError as e:
        raise to_http_exception(e) from e
    return EnrollmentResponse(
        learner_id=enrollment.learner_id,
        module_id=enrollment.module_id,
        enrolled_at=enrollment.enrolled_at,
    )


# =============================================================================
# AUTHORING
# =============================================================================


@router.post("", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED)
async def create_draft_module(
    request: ModuleCreate,
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
) -> ModuleResponse:
    """Save a new module as draft."""
    try:
        module = create_module(
            store,
            instructor.id,
            request.title,
            content_summary=request.content_summary,
            media=MediaUrls(**request.media_urls.model_dump()),
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return ModuleResponse(**module.to_dict())


@router.patch("/{module_id}", response_model=ModuleResponse)
async def edit_module(
    module_id: str,
    request: ModuleUpdate,
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
) -> ModuleResponse:
    """Edit a draft module. Published modules are read-only."""
    patch = request.model_dump(exclude_unset=True, exclude={"media_urls"})
    if request.media_urls is not None:
        patch.update(media_to_record(MediaUrls(**request.media_urls.model_dump())))

    try:
        module = update_module(store, instructor.id, module_id, patch)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return ModuleResponse(**module.to_dict())


@router.post("/{module_id}/publish", response_model=ModuleResponse)
async def publish(
    module_id: str,
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
) -> ModuleResponse:
    """Publish a module."""
    try:
        module = publish_module(store, instructor.id, module_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
    return ModuleResponse(**module.to_dict())


@router.post("/{module_id}/quiz/generate", response_model=QuizGenerateResponse)
async def generate_quiz_questions(
    module_id: str,
    request: QuizGenerateRequest,
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
    source: QuestionSource = Depends(get_question_source_dep),
) -> QuizGenerateResponse:
    """Generate draft questions for review. Nothing is stored."""
    builder = QuizBuilder()
    try:
        module = load_owned_module(store, instructor.id, module_id)
        await asyncio.to_thread(builder.generate, source, request.prompt, module)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e

    questions = [QuestionDraftSchema(**draft.to_dict()) for draft in builder.drafts]
    return QuizGenerateResponse(questions=questions, count=len(questions))


@router.post(
    "/{module_id}/quiz",
    response_model=QuizSaveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_quiz(
    module_id: str,
    request: QuizSaveRequest,
    instructor: Profile = Depends(get_instructor),
    store: AttemptStore = Depends(get_store),
) -> QuizSaveResponse:
    """Store the reviewed questions as the module's quiz."""
    builder = QuizBuilder([QuestionDraft.from_dict(q.model_dump()) for q in request.questions])
    try:
        saved = builder.save(
            store,
            instructor.id,
            module_id,
            ai_prompt=request.ai_prompt,
            publish=request.publish,
        )
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e

    return QuizSaveResponse(
        quiz_id=saved.quiz.id,
        module_id=saved.quiz.module_id,
        ai_prompt=saved.quiz.ai_prompt,
        question_count=len(saved.questions),
        module_published=saved.module.published,
    )
