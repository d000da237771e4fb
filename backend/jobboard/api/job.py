import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..models.job import Job
from ..models.user import User
from ..storage import FlatFileStore, get_store
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import get_error_message
from ..utils.roles import employee_only, employer_only
from ..utils.validation import validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


class JobCreate(BaseModel):
    # All optional so missing fields surface as our 400, not a schema 422.
    title: str | None = None
    description: str | None = None
    company: str | None = None
    location: str | None = None
    requirements: str | None = None


def _job_to_public(job: Job, posters: dict[str, User]) -> dict:
    poster = posters.get(job.posted_by)
    return {
        **job.to_record(),
        "postedByUser": poster.to_summary() if poster else None,
    }


def _get_job_or_404(job_id: str, store: FlatFileStore) -> Job:
    job = store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))
    return job


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(employer_only),
):
    title = validate_string_field(payload.title, "Title", max_length=150, required=False)
    description = validate_string_field(payload.description, "Description", max_length=10000, required=False)
    if not title or not description:
        raise HTTPException(status_code=400, detail=get_error_message("job_fields"))

    company = validate_string_field(payload.company, "Company", max_length=200, required=False)
    location = validate_string_field(payload.location, "Location", max_length=200, required=False)
    requirements = validate_string_field(payload.requirements, "Requirements", max_length=5000, required=False)

    job = store.create_job(
        {
            "title": title,
            "description": description,
            # Fall back to the employer's own profile.
            "company": company or user.company_name or "",
            "location": location or user.company_location or "",
            "requirements": requirements or "",
            "posted_by": user.id,
        }
    )
    return {"message": "Job posted successfully", "job": job.to_record()}


@router.get("")
def list_jobs(
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Open jobs only, newest first, each with a snapshot of its poster."""
    posters = {u.id: u for u in store.list_users()}
    return [_job_to_public(job, posters) for job in store.list_active_jobs()]


@router.get("/{job_id}")
def get_job(
    job_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    job = _get_job_or_404(job_id, store)
    poster = store.get_user(job.posted_by)
    return _job_to_public(job, {poster.id: poster} if poster else {})


@router.patch("/{job_id}/close")
def close_job(
    job_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    job = _get_job_or_404(job_id, store)
    if job.posted_by != user.id:
        raise HTTPException(status_code=403, detail=get_error_message("close_own_jobs"))

    job = store.close_job(job_id)
    return {"message": "Job marked as closed", "job": job.to_record()}


@router.post("/{job_id}/interest", status_code=201)
def show_interest(
    job_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(employee_only),
):
    job = _get_job_or_404(job_id, store)
    if job.is_closed:
        raise HTTPException(status_code=400, detail=get_error_message("job_closed"))

    interest, created = store.add_interest(job_id, user.id)
    if not created:
        return JSONResponse(
            status_code=200,
            content={"message": "Interest already recorded", "interest": interest.to_record()},
        )
    return {"message": "Interest shown successfully", "interest": interest.to_record()}


@router.get("/{job_id}/applicants")
def list_applicants(
    job_id: str,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    job = _get_job_or_404(job_id, store)
    if job.posted_by != user.id:
        raise HTTPException(status_code=403, detail=get_error_message("applicants_own_jobs"))
    if user.role != "employer":
        raise HTTPException(status_code=403, detail=get_error_message("applicants_employer_only"))

    applicants = []
    for interest in store.list_interests_by_job(job_id):
        applicant = store.get_user(interest.user_id)
        if not applicant:
            logger.warning("Interest %s references missing user %s", interest.id, interest.user_id)
            continue
        applicants.append(
            {
                "interestId": interest.id,
                "appliedAt": interest.created_at,
                "user": applicant.to_public(),
            }
        )
    return applicants
