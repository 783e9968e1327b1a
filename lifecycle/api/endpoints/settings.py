"""Tenant settings: business profile and notification preferences."""
from fastapi import APIRouter, HTTPException, status

from lifecycle.api.deps import DB, CurrentSubject
from lifecycle.schemas.settings import (
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    SettingsResponse,
)
from lifecycle.services.settings_service import SettingsService

router = APIRouter()


@router.get("", response_model=SettingsResponse)
async def get_settings(db: DB, subject: CurrentSubject):
    service = SettingsService(db)
    profile = await service.get_profile(subject.id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    preference = await service.get_preferences(subject.id)

    return SettingsResponse(
        profile=ProfileResponse.model_validate(profile),
        notifications=NotificationPreferencesResponse.model_validate(preference) if preference else None,
    )


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(data: ProfileUpdate, db: DB, subject: CurrentSubject):
    profile = await SettingsService(db).update_profile(subject.id, data.model_dump())
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return ProfileResponse.model_validate(profile)


@router.get("/notifications", response_model=NotificationPreferencesResponse)
async def get_notification_preferences(db: DB, subject: CurrentSubject):
    preference = await SettingsService(db).get_preferences(subject.id)
    if not preference:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Settings not found"
        )
    return NotificationPreferencesResponse.model_validate(preference)


@router.put("/notifications", response_model=NotificationPreferencesResponse)
async def update_notification_preferences(
    data: NotificationPreferencesUpdate,
    db: DB,
    subject: CurrentSubject,
):
    """
    Update the current tenant's notification preferences.
    alert_threshold must be between 1 and 365 days.
    """
    preference = await SettingsService(db).update_preferences(subject.id, data.model_dump())
    if not preference:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Settings not found"
        )
    return NotificationPreferencesResponse.model_validate(preference)
