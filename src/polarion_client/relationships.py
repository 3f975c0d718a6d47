from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, MutableMapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.jsonapi import split_project_id


class ResourceKind(str, Enum):
    """JSON:API ``type`` values of resources a relationship can point at."""

    USER = "users"
    WORK_ITEM = "workitems"
    DOCUMENT = "documents"
    CATEGORY = "categories"
    PLAN = "plans"
    COLLECTION = "collections"
    COMMENT = "workitem_comments"
    ATTACHMENT = "workitem_attachments"
    PROJECT = "projects"
    LINKED_WORK_ITEM = "linkedworkitems"


def _coerce_kind(value: str) -> Union[ResourceKind, str]:
    try:
        return ResourceKind(value)
    except ValueError:
        return value


class RelationshipRef(BaseModel):
    """
    Typed pointer to another resource.

    ``id`` is a bare id for users ("john.doe") and "project/local-id" for
    project-scoped resources ("MyProject/WI-123"). Unknown ``type`` strings are
    kept verbatim in ``kind``.
    """

    kind: Union[ResourceKind, str] = Field(alias="type")
    id: str
    revision: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("kind", mode="before")
    @classmethod
    def _known_kind(cls, v: Any) -> Any:
        return _coerce_kind(v) if isinstance(v, str) else v

    @field_validator("revision", mode="before")
    @classmethod
    def _empty_revision(cls, v: Any) -> Any:
        # "" and a missing revision both mean "latest"
        return v or None

    @classmethod
    def user(cls, user_id: str) -> "RelationshipRef":
        return cls(kind=ResourceKind.USER, id=user_id)

    @classmethod
    def work_item(
        cls, project_id: str, local_id: str, revision: Optional[str] = None
    ) -> "RelationshipRef":
        return cls(
            kind=ResourceKind.WORK_ITEM,
            id=f"{project_id}/{local_id}",
            revision=revision,
        )

    @property
    def project_id(self) -> Optional[str]:
        parts = split_project_id(self.id)
        return parts[0] if parts else None

    @property
    def local_id(self) -> str:
        parts = split_project_id(self.id)
        return parts[1] if parts else self.id

    def to_resource(self) -> dict:
        kind = self.kind.value if isinstance(self.kind, ResourceKind) else self.kind
        out = {"type": kind, "id": self.id}
        if self.revision:
            out["revision"] = self.revision
        return out


def _decode_one(item: Any) -> Optional[RelationshipRef]:
    if not isinstance(item, dict):
        return None
    kind = item.get("type")
    ref_id = item.get("id")
    if not isinstance(kind, str) or not isinstance(ref_id, str) or not ref_id:
        return None
    fields = {"kind": _coerce_kind(kind), "id": ref_id}
    revision = item.get("revision")
    if isinstance(revision, str) and revision:
        fields["revision"] = revision
    return RelationshipRef(**fields)


def extract_ref(
    container: MutableMapping[str, Any], key: str
) -> Tuple[Optional[RelationshipRef], bool]:
    """
    Resolve a single reference stored under ``key``.

    Accepts {"data": {...}}, {"data": [{...}, ...]} (first decodable element)
    and a bare string, read as a user id.
    """
    raw = container.get(key)
    if isinstance(raw, str):
        if not raw:
            return None, False
        return RelationshipRef(kind=ResourceKind.USER, id=raw), True

    if not isinstance(raw, dict) or "data" not in raw:
        return None, False

    data = raw["data"]
    if isinstance(data, dict):
        ref = _decode_one(data)
        return ref, ref is not None
    if isinstance(data, list):
        for item in data:
            ref = _decode_one(item)
            if ref is not None:
                return ref, True
    return None, False


def extract_refs(container: MutableMapping[str, Any], key: str) -> List[RelationshipRef]:
    """All decodable references under ``key``, in order; malformed ones are skipped."""
    raw = container.get(key)
    if not isinstance(raw, dict):
        return []

    data = raw.get("data")
    if isinstance(data, dict):
        ref = _decode_one(data)
        return [ref] if ref is not None else []
    if isinstance(data, list):
        return [ref for ref in map(_decode_one, data) if ref is not None]
    return []


def encode_ref(
    container: MutableMapping[str, Any], key: str, ref: Optional[RelationshipRef]
) -> None:
    """Write ``ref`` in envelope form; absent or empty-id references delete the key."""
    if ref is None or not ref.id:
        container.pop(key, None)
        return
    container[key] = {"data": ref.to_resource()}


def encode_refs(
    container: MutableMapping[str, Any],
    key: str,
    refs: Iterable[RelationshipRef],
) -> None:
    items = [r.to_resource() for r in refs if r is not None and r.id]
    if not items:
        container.pop(key, None)
        return
    container[key] = {"data": items}


__all__ = [
    "ResourceKind",
    "RelationshipRef",
    "extract_ref",
    "extract_refs",
    "encode_ref",
    "encode_refs",
]
