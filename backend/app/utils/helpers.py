from datetime import datetime, timezone
from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId


def object_id_to_str(obj_id) -> str:
    """Convert ObjectId to string."""
    if isinstance(obj_id, ObjectId):
        return str(obj_id)
    return obj_id


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id, returning None when it is not a valid ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def canonical_id(value: str) -> str:
    """Normalise an ObjectId string to its lowercase hex form; other ids pass through."""
    oid = parse_object_id(value)
    return str(oid) if oid else value


def format_document(document: dict) -> dict:
    """Stringify the MongoDB _id of a document in place."""
    if document and "_id" in document:
        document["_id"] = object_id_to_str(document["_id"])
    return document


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)
