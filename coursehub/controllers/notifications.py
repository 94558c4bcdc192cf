from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from coursehub.dependencies.getdb import get_db
from coursehub.oauth2 import get_current_user_jwt
from coursehub.schemas.notification import NotificationActionResponse, NotificationListResponse
from coursehub.services import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/{user_id}", response_model=NotificationListResponse)
async def get_notifications(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return notification_service.list_for_user(db, current_user, user_id)


@router.patch("/user/{user_id}/read-all")
async def mark_all_notifications_read(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    updated = notification_service.mark_all_read(db, current_user, user_id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.delete("/user/{user_id}/clear")
async def clear_notifications(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    deleted = notification_service.clear_all(db, current_user, user_id)
    return {"message": "All notifications cleared", "deleted": deleted}


@router.patch("/{notification_id}/read", response_model=NotificationActionResponse)
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    notification = notification_service.mark_read(db, current_user, notification_id)
    return {"message": "Notification marked as read", "notification": notification}


@router.delete("/{notification_id}", response_model=NotificationActionResponse)
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    notification_service.delete_notification(db, current_user, notification_id)
    return {"message": "Notification deleted"}
