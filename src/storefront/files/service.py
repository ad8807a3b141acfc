"""File operations for authenticated callers.

Bytes go to the blob store first and the metadata is registered afterwards.
When registration fails the stored blob is removed again so no orphan is left
behind.
"""

import hashlib
import json

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.domain import logger
from storefront.exceptions import AccessDeniedError
from storefront.files.management import DeleteFile, RegisterUpload
from storefront.files.storage import get_blob_store
from storefront.files.uploaded_file import UploadedFile
from storefront.files.validation import storage_filename, storage_path, validate_upload
from storefront.order.order import Order
from storefront.order.queries import get_order_for
from storefront.settings import setting


def _require_user(caller):
    if not caller.is_authenticated:
        raise AccessDeniedError("Sign in to manage files")


def _load(file_id):
    try:
        return current_domain.repository_for(UploadedFile).get(file_id)
    except ObjectNotFoundError:
        raise ObjectNotFoundError(f"File {file_id} does not exist") from None


def _is_assigned_editor(caller, record):
    if not record.order_id or not caller.user_id:
        return False
    try:
        order = current_domain.repository_for(Order).get(record.order_id)
    except ObjectNotFoundError:
        return False
    return str(order.assigned_editor_id or "") == str(caller.user_id)


def can_read(caller, record):
    return record.is_public or caller.is_admin or record.is_owned_by(caller) or _is_assigned_editor(caller, record)


def file_payload(record):
    return {
        "file_id": str(record.id),
        "order_id": str(record.order_id) if record.order_id else None,
        "original_name": record.original_name,
        "filename": record.filename,
        "mime_type": record.mime_type,
        "size": record.size,
        "checksum": record.checksum,
        "file_type": record.file_type,
        "is_processed": record.is_processed,
        "is_public": record.is_public,
        "details": record.meta,
        "uploaded_at": record.uploaded_at.isoformat() if record.uploaded_at else None,
    }


def upload_file(caller, data, original_name, mime_type, file_type, order_id=None, description=None):
    _require_user(caller)
    validate_upload(len(data), original_name, mime_type, file_type, max_size=setting("MAX_UPLOAD_BYTES"))
    if order_id:
        get_order_for(caller, order_id)

    filename = storage_filename(original_name)
    path = storage_path(file_type, caller.user_id, filename)
    store = get_blob_store()
    store.store(data, path)

    try:
        file_id = current_domain.process(
            RegisterUpload(
                user_id=caller.user_id,
                order_id=order_id,
                original_name=original_name,
                filename=filename,
                path=path,
                mime_type=mime_type.lower(),
                size=len(data),
                checksum=hashlib.sha256(data).hexdigest(),
                file_type=file_type,
                details=json.dumps({"description": description}) if description else None,
            ),
            asynchronous=False,
        )
    except Exception:
        store.delete(path)
        logger.warning("upload_registration_failed", path=path, user_id=str(caller.user_id))
        raise

    logger.info("file_uploaded", file_id=str(file_id), size=len(data), file_type=file_type)
    return _load(file_id)


def open_file(caller, file_id):
    """Return ``(record, stream)`` for a file the caller may read."""
    record = _load(file_id)
    if not can_read(caller, record):
        raise AccessDeniedError(f"Access to file {file_id} is denied")
    return record, get_blob_store().open(record.path)


def get_file(caller, file_id):
    record = _load(file_id)
    if not can_read(caller, record):
        raise AccessDeniedError(f"Access to file {file_id} is denied")
    return record


def delete_file(caller, file_id):
    _require_user(caller)
    record = _load(file_id)
    if not (caller.is_admin or record.is_owned_by(caller)):
        raise AccessDeniedError(f"Only the owner can delete file {file_id}")

    path = current_domain.process(DeleteFile(file_id=file_id, actor=str(caller.user_id)), asynchronous=False)
    get_blob_store().delete(path)


def list_files(caller, file_type=None, order_id=None):
    _require_user(caller)
    records = current_domain.repository_for(UploadedFile).for_user(caller.user_id)
    if file_type:
        records = [r for r in records if r.file_type == file_type]
    if order_id:
        records = [r for r in records if str(r.order_id or "") == str(order_id)]
    return sorted(records, key=lambda r: r.uploaded_at, reverse=True)


def storage_usage(caller):
    records = list_files(caller)
    by_type = {}
    for record in records:
        bucket = by_type.setdefault(record.file_type, {"count": 0, "size": 0})
        bucket["count"] += 1
        bucket["size"] += record.size
    return {
        "total_files": len(records),
        "total_size": sum(r.size for r in records),
        "by_type": by_type,
    }


def files_for_order(caller, order_id):
    get_order_for(caller, order_id)
    records = current_domain.repository_for(UploadedFile).for_order(order_id)
    return sorted(records, key=lambda r: r.uploaded_at)
