from fastapi import APIRouter, Depends, File, UploadFile

from taskforge.auth import RequireAuth
from taskforge.errors import ValidationError
from taskforge.schemas import PictureUpdated, StandardError, UserProfile, ValidationProblem
from taskforge.services.blob_store import BlobStore, get_blob_store
from taskforge.services.identity import IdentityDirectory, get_identity_directory
from taskforge.services.images import Attachment, validate_attachments

router = APIRouter()


@router.get(
    "/user",
    response_model=UserProfile,
    summary="Get current user profile",
    description="Fetch the caller's profile from the identity directory.",
    responses={
        401: {"model": StandardError, "description": "Unauthorized"},
        503: {"model": StandardError, "description": "Identity directory not configured"},
    },
)
async def get_current_user_profile(
    user: RequireAuth,
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    profile = await directory.get_user(user.id)
    return UserProfile.model_validate({**profile, "user_id": profile.get("user_id", user.id)})


@router.put(
    "/user/picture",
    response_model=PictureUpdated,
    summary="Set profile picture",
    description="Upload an image and use it as the caller's profile picture.",
    responses={
        400: {"model": ValidationProblem, "description": "Invalid file type or size"},
        401: {"model": StandardError, "description": "Unauthorized"},
    },
)
async def set_profile_picture(
    user: RequireAuth,
    image: UploadFile = File(...),
    blob_store: BlobStore = Depends(get_blob_store),
    directory: IdentityDirectory = Depends(get_identity_directory),
):
    attachment = Attachment(
        filename=image.filename or "unknown",
        content_type=image.content_type or "application/octet-stream",
        content=await image.read(),
    )
    errors = validate_attachments([attachment])
    if not attachment.content:
        errors.append("Image is empty.")
    if errors:
        raise ValidationError({"image": errors})

    blob = await blob_store.upload(attachment.content, attachment.content_type)
    await directory.set_user_picture(user.id, blob.url)
    return PictureUpdated(picture=blob.url)
