"""
Onboarding API routes.
Stores parent and child names and tracks onboarding progress.
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from storytime.shared.logging import ServiceLogger
from storytime.shared.utils import timing_decorator

from ..core.auth import get_current_user_id
from ..schemas import (
    OnboardingRequest, OnboardingResponse, OnboardingProfile,
    OnboardingStatusResponse, CurrentUserResponse, CompleteOnboardingResponse
)
from ..repositories.user_repository import user_repository

logger = ServiceLogger("onboarding-api")

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])

REQUIRED_FIELDS = ["parentName", "childName"]


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


@router.post("", response_model=OnboardingResponse, status_code=status.HTTP_201_CREATED)
@timing_decorator
async def save_onboarding(
    body: Any = Body(None),
    clerk_user_id: str = Depends(get_current_user_id)
):
    """
    Store parent name, child name and optional chosen voice.

    Args:
        body: JSON body with parentName, childName and chosenVoice
        clerk_user_id: Current authenticated user

    Returns:
        Welcome message and the stored names
    """
    request = OnboardingRequest.from_body(body)
    parent_name = _clean(request.parentName)
    child_name = _clean(request.childName)
    chosen_voice = _clean(request.chosenVoice) or None

    if not parent_name or not child_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Missing required fields", "required": REQUIRED_FIELDS}
        )

    fields = {"parent_name": parent_name, "child_name": child_name}
    if chosen_voice:
        fields["chosen_voice"] = chosen_voice

    try:
        user = user_repository.save_user(clerk_user_id, fields)
    except Exception as e:
        logger.error("Failed to save onboarding", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to save onboarding"}
        )

    logger.success(f"Onboarding saved for {user.parent_name} & {user.child_name} ({clerk_user_id})")

    return OnboardingResponse(
        userId=user.clerk_id,
        message=f"Welcome {user.parent_name}! Story time with {user.child_name} is ready.",
        data=OnboardingProfile(
            parentName=user.parent_name,
            childName=user.child_name,
            chosenVoice=user.chosen_voice
        )
    )


@router.get("/status", response_model=OnboardingStatusResponse)
@timing_decorator
async def get_onboarding_status(clerk_user_id: str = Depends(get_current_user_id)):
    """Report whether the current user has finished onboarding"""
    try:
        user = user_repository.get_user(clerk_user_id)
    except Exception as e:
        logger.error("Failed to check onboarding status", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to check onboarding status"}
        )

    return OnboardingStatusResponse(
        onboardingComplete=bool(user and user.onboarding_complete),
        hasProfile=user is not None,
        hasVoiceClone=bool(user and user.voice_clone_id)
    )


@router.get("/current", response_model=CurrentUserResponse)
@timing_decorator
async def get_current_profile(clerk_user_id: str = Depends(get_current_user_id)):
    """Get the current user's onboarding profile"""
    try:
        user = user_repository.get_user(clerk_user_id)
    except Exception as e:
        logger.error("Failed to get current user", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve user"}
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "No user found. Please complete onboarding first."}
        )

    return CurrentUserResponse.from_user(user)


@router.post("/complete", response_model=CompleteOnboardingResponse)
@timing_decorator
async def complete_onboarding(clerk_user_id: str = Depends(get_current_user_id)):
    """Mark onboarding as complete for the current user"""
    try:
        user_repository.complete_onboarding(clerk_user_id)
    except Exception as e:
        logger.error("Failed to complete onboarding", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to complete onboarding"}
        )

    logger.success(f"Onboarding complete for user {clerk_user_id}")

    return CompleteOnboardingResponse()
