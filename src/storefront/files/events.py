"""Domain events for uploaded files."""

from protean.fields import Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="UploadedFile")
class FileUploaded:
    """A file was stored and its metadata registered."""

    __version__ = "v1"

    file_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier()
    file_type = String(required=True)
    size = Integer(required=True)


@storefront.event(part_of="UploadedFile")
class FileDeleted:
    __version__ = "v1"

    file_id = Identifier(required=True)
    user_id = Identifier(required=True)
    actor = String(required=True)
