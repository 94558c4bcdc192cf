import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from starlette import status

from coursehub.celery_app import send_welcome_email_task
from coursehub.dependencies.getdb import get_db
from coursehub.models import User
from coursehub.oauth2 import (
    authenticate_user,
    bcrypt_context,
    create_access_token,
    get_current_user_jwt,
    oauth2_bearer,
)
from coursehub.schemas.course import CourseResponse
from coursehub.schemas.user import (
    AuthResponse,
    CreateUserRequest,
    ProfileUpdate,
    UserLogin,
    UserResponse,
)
from coursehub.services import storage, user_service
from coursehub.services.token_blacklist import add_to_blacklist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


def _auth_response(user: User) -> dict:
    token = create_access_token(user.email, user.id, user.role)
    return {"token": token, "token_type": "bearer", "user": user}


### ROUTE FOR REGISTRATION ###
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(create_user_request: CreateUserRequest, db: Session = Depends(get_db)):
    user_service.check_if_user_exists(
        db, email=create_user_request.email, username=create_user_request.username
    )

    user = User(
        username=create_user_request.username,
        email=create_user_request.email,
        hashed_password=bcrypt_context.hash(create_user_request.password),
        role=create_user_request.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s registered as %s", user.id, user.role)

    try:
        send_welcome_email_task.delay(user.email, user.username)
    except Exception:
        logger.warning("Could not queue welcome email for %s", user.email, exc_info=True)

    return _auth_response(user)


### ROUTE FOR LOGIN ###
@router.post("/login", response_model=AuthResponse)
async def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = authenticate_user(payload.email, payload.password, db)
    return _auth_response(user)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    current_user: dict = Depends(get_current_user_jwt),
    token: str = Depends(oauth2_bearer),
):
    remaining = int(current_user["exp"] - datetime.now(timezone.utc).timestamp())
    revoked = remaining > 0 and add_to_blacklist(token, remaining)
    return {"message": "Successfully logged out", "token_revoked": bool(revoked)}


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user_jwt), db: Session = Depends(get_db)
):
    return user_service.get_user_or_404(db, current_user["user_id"])


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    payload: ProfileUpdate,
    current_user: dict = Depends(get_current_user_jwt),
    db: Session = Depends(get_db),
):
    user = user_service.get_user_or_404(db, current_user["user_id"])
    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    user_service.check_if_user_exists(
        db,
        email=update_data.get("email"),
        username=update_data.get("username"),
        exclude_id=user.id,
    )
    for key, value in update_data.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/profile/picture", response_model=UserResponse)
async def upload_profile_picture(
    profile_picture: UploadFile = File(None),
    current_user: dict = Depends(get_current_user_jwt),
    db: Session = Depends(get_db),
):
    user = user_service.get_user_or_404(db, current_user["user_id"])
    user.profile_picture = await storage.store_image(
        profile_picture,
        storage.PROFILE_PICTURES_PREFIX,
        allowed_types=storage.PROFILE_PICTURE_TYPES,
    )
    db.commit()
    db.refresh(user)
    return user


@router.get("/{user_id}/favorites", response_model=List[CourseResponse])
async def get_favorites(
    user_id: int,
    current_user: dict = Depends(get_current_user_jwt),
    db: Session = Depends(get_db),
):
    return user_service.list_favorites(db, current_user, user_id)


@router.post("/{user_id}/favorites/{course_id}")
async def add_favorite(
    user_id: int,
    course_id: int,
    current_user: dict = Depends(get_current_user_jwt),
    db: Session = Depends(get_db),
):
    user_service.add_favorite(db, current_user, user_id, course_id)
    return {"message": "Course added to favorites"}


@router.delete("/{user_id}/favorites/{course_id}")
async def remove_favorite(
    user_id: int,
    course_id: int,
    current_user: dict = Depends(get_current_user_jwt),
    db: Session = Depends(get_db),
):
    user_service.remove_favorite(db, current_user, user_id, course_id)
    return {"message": "Course removed from favorites"}
