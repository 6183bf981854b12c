from dataclasses import dataclass


@dataclass(frozen=True)
class StoredObject:
    """Location of an object written to a store.

    ``object_id`` is the provider's own identifier (Cloudinary public id,
    B2 file id) and is what remediation calls operate on.
    """

    url: str
    object_id: str
    size_bytes: int
    signed: bool = False
