from fastapi import APIRouter, Depends, HTTPException

from ..models.user import User
from ..storage import FlatFileStore, get_store
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import get_error_message

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/{user_id}")
def get_profile(
    user_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    profile = store.get_user(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail=get_error_message("user_not_found"))
    return profile.to_public()


@router.get("/{user_id}/jobs")
def list_user_jobs(
    user_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Everything the user has posted, open and closed, newest first."""
    return [job.to_record() for job in store.list_jobs_by_user(user_id)]


@router.get("/{user_id}/interests")
def list_user_interests(
    user_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    # An employee's own applications; nobody else gets to see them.
    if user.id != user_id:
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))

    jobs = {job.id: job for job in store.list_jobs()}
    return [
        {
            "interestId": interest.id,
            "appliedAt": interest.created_at,
            "job": jobs[interest.job_id].to_record() if interest.job_id in jobs else None,
        }
        for interest in store.list_interests_by_user(user_id)
    ]
