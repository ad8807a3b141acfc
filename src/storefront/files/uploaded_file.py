"""UploadedFile aggregate — metadata for a stored manuscript, asset or deliverable.

The bytes live in the blob store under ``path``; the path is internal and
never leaves the storefront.
"""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.files.events import FileDeleted, FileUploaded
from storefront.files.validation import FileType


@storefront.aggregate
class UploadedFile:
    user_id = Identifier(required=True)
    order_id = Identifier()
    original_name = String(required=True, max_length=255)
    filename = String(required=True, max_length=255)
    path = String(required=True, max_length=500)
    mime_type = String(required=True, max_length=100)
    size = Integer(required=True, min_value=1)
    checksum = String(max_length=64)
    file_type = String(required=True, choices=FileType)
    is_processed = Boolean(default=False)
    is_public = Boolean(default=False)
    details = Text()  # JSON
    uploaded_at = DateTime()

    @classmethod
    def register(
        cls,
        user_id,
        original_name,
        filename,
        path,
        mime_type,
        size,
        file_type,
        checksum=None,
        order_id=None,
        details=None,
        is_public=False,
    ):
        record = cls(
            user_id=user_id,
            order_id=order_id,
            original_name=original_name,
            filename=filename,
            path=path,
            mime_type=mime_type,
            size=size,
            checksum=checksum,
            file_type=file_type,
            is_public=is_public,
            details=json.dumps(details) if details else None,
            uploaded_at=datetime.now(UTC),
        )
        record.raise_(
            FileUploaded(
                file_id=str(record.id),
                user_id=str(user_id),
                order_id=str(order_id) if order_id else None,
                file_type=file_type,
                size=size,
            )
        )
        return record

    @property
    def meta(self):
        return json.loads(self.details) if self.details else {}

    def is_owned_by(self, caller):
        return bool(caller.user_id) and str(self.user_id) == str(caller.user_id)

    def mark_deleted(self, actor):
        self.raise_(FileDeleted(file_id=str(self.id), user_id=str(self.user_id), actor=actor))


@storefront.repository(part_of=UploadedFile)
class UploadedFileRepository:
    def for_user(self, user_id):
        return self._dao.query.filter(user_id=user_id).limit(None).all().items

    def for_order(self, order_id):
        return self._dao.query.filter(order_id=order_id).limit(None).all().items
