"""Image registry: content-hash deduplication of uploaded images.

An image is stored once per distinct content hash and shared by every task
that references it. Hashes are MD5 digests, base64-encoded; MD5 is used as a
fast content fingerprint, not for security.
"""

import base64
import hashlib
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskforge.config import settings
from taskforge.errors import DependencyError
from taskforge.models.image import Image
from taskforge.schemas.image import ImageSnapshot
from taskforge.services.audit import AuditLog
from taskforge.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

IMAGE_MODEL = "Image"


@dataclass(frozen=True)
class Attachment:
    """An uploaded file, fully read into memory."""

    filename: str
    content_type: str
    content: bytes


@dataclass
class ImageDiff:
    """Result of comparing a task's stored images against a new submission."""

    retained: list[Image] = field(default_factory=list)
    to_delete: list[Image] = field(default_factory=list)
    to_add_hashes: list[str] = field(default_factory=list)


def fingerprint(content: bytes) -> str:
    return base64.b64encode(hashlib.md5(content).digest()).decode("ascii")


def non_empty(attachments: Iterable[Attachment]) -> list[Attachment]:
    return [a for a in attachments if len(a.content) > 0]


def validate_attachments(attachments: Iterable[Attachment]) -> list[str]:
    """Return validation messages for attachments with a bad type or size."""
    errors = []
    for attachment in non_empty(attachments):
        if attachment.content_type not in settings.allowed_image_types:
            errors.append(
                f"{attachment.filename}: invalid file type. "
                f"Allowed types: {', '.join(settings.allowed_image_types)}"
            )
        if len(attachment.content) > settings.max_image_size_bytes:
            errors.append(
                f"{attachment.filename}: file too large. "
                f"Maximum size: {settings.max_image_size_bytes // (1024 * 1024)} MB"
            )
    return errors


def diff_images(previous: list[Image], incoming_hashes: Iterable[str]) -> ImageDiff:
    """Split previous images into retained/to-delete and find hashes still to add.

    Matching is by content hash only, so resubmitting identical bytes in any
    order leaves storage untouched.
    """
    incoming = list(dict.fromkeys(incoming_hashes))
    incoming_set = set(incoming)
    previous_hashes = {image.hash for image in previous}

    diff = ImageDiff()
    for image in previous:
        if image.hash in incoming_set:
            diff.retained.append(image)
        else:
            diff.to_delete.append(image)
    diff.to_add_hashes = [h for h in incoming if h not in previous_hashes]
    return diff


def snapshot(image: Image) -> dict:
    return ImageSnapshot.model_validate(image).model_dump(mode="json")


class ImageRegistry:
    def __init__(self, db: Session, blob_store: BlobStore, audit: AuditLog):
        self.db = db
        self.blob_store = blob_store
        self.audit = audit

    def find_by_hashes(self, hashes: Iterable[str]) -> list[Image]:
        hashes = set(hashes)
        if not hashes:
            return []
        return list(self.db.scalars(select(Image).where(Image.hash.in_(hashes))))

    def get_many(self, image_ids: Iterable[str]) -> list[Image]:
        """Load images by id, preserving the given order.

        Ids whose image no longer exists are skipped.
        """
        ids = [UUID(i) for i in image_ids]
        if not ids:
            return []
        by_id = {img.id: img for img in self.db.scalars(select(Image).where(Image.id.in_(ids)))}
        missing = [str(i) for i in ids if i not in by_id]
        if missing:
            logger.warning(f"Skipping dangling image references: {', '.join(missing)}")
        return [by_id[i] for i in ids if i in by_id]

    async def resolve(self, attachments: Iterable[Attachment]) -> list[Image]:
        """Map attachments to registry images, uploading only unseen content.

        Empty attachments are ignored. Attachments sharing a hash, whether
        within this call or with an existing record, resolve to one image.
        The result follows attachment order without duplicates.
        """
        attachments = non_empty(attachments)
        hashes = [fingerprint(a.content) for a in attachments]
        known = {image.hash: image for image in self.find_by_hashes(hashes)}

        resolved: dict[str, Image] = {}
        uploaded: list[str] = []
        try:
            for attachment, digest in zip(attachments, hashes):
                if digest in resolved:
                    continue
                image = known.get(digest)
                if image is not None:
                    logger.info(f"Reusing image {image.id} for {attachment.filename}")
                else:
                    image, created = await self._store(attachment, digest)
                    if created:
                        uploaded.append(image.key)
                resolved[digest] = image
        except DependencyError:
            if uploaded:
                logger.warning(
                    f"Aborting after {len(uploaded)} upload(s); orphaned blobs: {', '.join(uploaded)}"
                )
            raise
        return list(resolved.values())

    async def _store(self, attachment: Attachment, digest: str) -> tuple[Image, bool]:
        """Upload an attachment and register it under its hash.

        If another request registered the same hash after the lookup in
        `resolve`, that record is reused and the blob just uploaded is left
        orphaned.

        Raises:
            DependencyError: If the upload or the registry write fails.
        """
        blob = await self.blob_store.upload(attachment.content, attachment.content_type)
        image = Image(
            hash=digest,
            key=blob.key,
            url=blob.url,
            content_type=attachment.content_type,
            size_bytes=len(attachment.content),
        )
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Flushing before registering {attachment.filename} failed: {e!r}; "
                f"orphaned blob: {blob.key}"
            )
            raise DependencyError("database", f"could not flush pending changes: {e}") from e

        try:
            # Savepoint so a duplicate hash discards only the image row
            with self.db.begin_nested():
                self.db.add(image)
                self.db.flush()
        except IntegrityError as e:
            winner = self.db.scalar(select(Image).where(Image.hash == digest))
            if winner is None:
                logger.error(f"Registering {attachment.filename} failed: {e!r}; orphaned blob: {blob.key}")
                raise DependencyError("database", f"could not register image: {e}") from e
            logger.warning(
                f"Image {digest} was registered concurrently as {winner.id}; orphaned blob: {blob.key}"
            )
            return winner, False
        except SQLAlchemyError as e:
            logger.error(f"Registering {attachment.filename} failed: {e!r}; orphaned blob: {blob.key}")
            raise DependencyError("database", f"could not register image: {e}") from e

        self.audit.inserted(IMAGE_MODEL, snapshot(image))
        logger.info(f"Stored image {image.id} for {attachment.filename} at {blob.key}")
        return image, True

    async def delete(self, image: Image) -> None:
        """Remove an image from the blob store and the registry.

        The image is removed globally, even if other tasks still reference it.
        """
        previous = snapshot(image)
        await self.blob_store.delete(image.key)
        self.db.delete(image)
        self.audit.deleted(IMAGE_MODEL, previous)
        logger.info(f"Deleted image {image.id} ({image.key})")
