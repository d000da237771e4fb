import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from ..models.user import User
from ..services.uploads import delete_profile_photo, save_profile_photo
from ..storage import FlatFileStore, get_store
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import get_error_message
from ..utils.jwt import (
    create_access_token,
    create_refresh_token,
    revoke_all_user_tokens,
    revoke_refresh_token,
    verify_refresh_token,
)
from ..utils.validation import (
    parse_experiences,
    validate_email,
    validate_role,
    validate_string_field,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str | None = None


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


def _session_payload(user: User, store: FlatFileStore, message: str) -> dict:
    return {
        "message": message,
        "user": user.to_public(),
        "accessToken": create_access_token(user),
        "refreshToken": create_refresh_token(user, store),
    }


@router.post("/register", status_code=201)
async def register(
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phone: str | None = Form(default=None),
    role: str | None = Form(default=None),
    company_name: str | None = Form(default=None, alias="companyName"),
    company_location: str | None = Form(default=None, alias="companyLocation"),
    company_description: str | None = Form(default=None, alias="companyDescription"),
    experiences: str | None = Form(default=None),
    photo: UploadFile | None = File(default=None),
    store: FlatFileStore = Depends(get_store),
):
    if not all(v and v.strip() for v in (name, email, phone, role)):
        raise HTTPException(status_code=400, detail=get_error_message("registration_fields"))

    role = validate_role(role)
    email = validate_email(email)
    data = {
        "name": validate_string_field(name, "Name", max_length=150),
        "email": email,
        "phone": validate_string_field(phone, "Phone", max_length=30),
        "role": role,
    }

    # Fail fast before touching the upload dir; create_user re-checks under its lock.
    if store.get_user_by_email(email):
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))

    if role == "employer":
        company = validate_string_field(company_name, "Company name", max_length=200, required=False)
        location = validate_string_field(company_location, "Company location", max_length=200, required=False)
        if not company or not location:
            raise HTTPException(status_code=400, detail=get_error_message("employer_fields"))
        data["company_name"] = company
        data["company_location"] = location
        data["company_description"] = validate_string_field(
            company_description, "Company description", max_length=5000, required=False
        ) or ""
    else:
        data["experiences"] = parse_experiences(experiences)

    photo_url = None
    if photo is not None and photo.filename:
        photo_url = await save_profile_photo(photo)
    data["photo"] = photo_url

    try:
        user = store.create_user(data)
    except Exception:
        # Includes ConflictError from a registration that raced us to the same email.
        delete_profile_photo(photo_url)
        raise

    return _session_payload(user, store, "User created successfully")


@router.post("/login")
def login(payload: LoginRequest, store: FlatFileStore = Depends(get_store)):
    # Email-only sign-in; knowing the address is the whole credential.
    email = (payload.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail=get_error_message("email_required"))

    user = store.get_user_by_email(email)
    if not user:
        raise HTTPException(status_code=404, detail=get_error_message("user_not_found"))

    logger.info("User %s logged in", user.id)
    return _session_payload(user, store, "Login successful")


@router.post("/refresh")
def refresh(payload: RefreshRequest, store: FlatFileStore = Depends(get_store)):
    if not payload.refresh_token:
        raise HTTPException(status_code=400, detail=get_error_message("refresh_token_required"))

    claims = verify_refresh_token(payload.refresh_token, store)
    if not claims:
        raise HTTPException(status_code=401, detail=get_error_message("invalid_refresh_token"))

    user = store.get_user(claims["userId"])
    if not user:
        raise HTTPException(status_code=401, detail=get_error_message("user_not_found"))

    return {"accessToken": create_access_token(user)}


@router.post("/logout")
def logout(
    payload: RefreshRequest | None = None,
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    if payload and payload.refresh_token:
        revoke_refresh_token(payload.refresh_token, store, user_id=user.id)
    return {"message": "Logged out successfully"}


@router.post("/logout-all")
def logout_all(
    store: FlatFileStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    revoked = revoke_all_user_tokens(user.id, store)
    return {"message": "Logged out of all sessions", "revoked": revoked}
