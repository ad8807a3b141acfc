"""Commands and handler that register and delete uploaded files."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import logger, storefront
from storefront.files.uploaded_file import UploadedFile


@storefront.command(part_of="UploadedFile")
class RegisterUpload:
    user_id = Identifier(required=True)
    order_id = Identifier()
    original_name = String(required=True, max_length=255)
    filename = String(required=True, max_length=255)
    path = String(required=True, max_length=500)
    mime_type = String(required=True, max_length=100)
    size = Integer(required=True, min_value=1)
    checksum = String(max_length=64)
    file_type = String(required=True, max_length=20)
    is_public = Boolean(default=False)
    details = Text()  # JSON


@storefront.command(part_of="UploadedFile")
class DeleteFile:
    file_id = Identifier(required=True)
    actor = String(required=True, max_length=100)


@storefront.command_handler(part_of=UploadedFile)
class ManageFilesHandler:
    @handle(RegisterUpload)
    def register_upload(self, command):
        record = UploadedFile.register(
            user_id=command.user_id,
            order_id=command.order_id,
            original_name=command.original_name,
            filename=command.filename,
            path=command.path,
            mime_type=command.mime_type,
            size=command.size,
            checksum=command.checksum,
            file_type=command.file_type,
            is_public=command.is_public,
            details=json.loads(command.details) if command.details else None,
        )
        current_domain.repository_for(UploadedFile).add(record)
        return str(record.id)

    @handle(DeleteFile)
    def delete_file(self, command):
        repo = current_domain.repository_for(UploadedFile)
        record = repo.get(command.file_id)
        record.mark_deleted(command.actor)
        repo._dao.delete(record)
        logger.info("file_deleted", file_id=str(record.id), actor=command.actor)
        return record.path
