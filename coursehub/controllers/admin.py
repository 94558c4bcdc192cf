from typing import List, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from coursehub.dependencies.getdb import get_db
from coursehub.roles import ApprovalStatus, UserRole
from coursehub.schemas.course import (
    AdminStatsResponse,
    CourseActionResponse,
    CourseResponse,
    RejectCourseRequest,
)
from coursehub.security.permissions import require_role
from coursehub.services import course_service

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_only = require_role(UserRole.ADMIN)


@router.get("/courses/pending", response_model=List[CourseResponse])
async def get_pending_courses(
    db: Session = Depends(get_db), current_user: dict = Depends(admin_only)
):
    return course_service.list_pending(db, current_user)


@router.get("/courses", response_model=List[CourseResponse])
async def get_courses_by_status(
    status: Optional[ApprovalStatus] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(admin_only),
):
    return course_service.list_by_status(db, current_user, status)


@router.patch("/courses/{course_id}/approve", response_model=CourseActionResponse)
async def approve_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(admin_only),
):
    course = course_service.approve_course(db, current_user, course_id)
    return {"message": "Course approved successfully", "course": course}


@router.patch("/courses/{course_id}/reject", response_model=CourseActionResponse)
async def reject_course(
    course_id: int,
    reject_request: Optional[RejectCourseRequest] = Body(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(admin_only),
):
    reason = reject_request.rejection_reason if reject_request else None
    course = course_service.reject_course(db, current_user, course_id, reason)
    return {"message": "Course rejected", "course": course}


@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(
    db: Session = Depends(get_db), current_user: dict = Depends(admin_only)
):
    return course_service.admin_stats(db, current_user)
