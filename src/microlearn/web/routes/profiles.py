"""Profile endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from microlearn.core.catalog import create_profile, get_profile
from microlearn.db.store import AttemptStore, StoreError
from microlearn.web.deps import get_store, to_http_exception
from microlearn.web.schemas import ProfileCreate, ProfileResponse

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register_profile(
    request: ProfileCreate,
    store: AttemptStore = Depends(get_store),
) -> ProfileResponse:
    """Register a learner or instructor."""
    try:
        profile = create_profile(store, request.full_name, request.role, email=request.email)
    except StoreError as e:
        raise to_http_exception(e) from e
    return ProfileResponse(**profile.to_dict())


@router.get("/{profile_id}", response_model=ProfileResponse)
async def read_profile(
    profile_id: str,
    store: AttemptStore = Depends(get_store),
) -> ProfileResponse:
    """Get a profile by ID."""
    try:
        profile = get_profile(store, profile_id)
    except StoreError as e:
        raise to_http_exception(e) from e

    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile '{profile_id}' not found",
        )
    return ProfileResponse(**profile.to_dict())
