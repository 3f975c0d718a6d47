from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .core import jsonapi
from .fields import CustomFields
from .field_types import TextContent
from .relationships import RelationshipRef, extract_ref, extract_refs


class Resource(BaseModel):
    """
    Base model for JSON:API resources.
    relationships/links/meta stay loosely typed because Polarion uses:
      - single resource identifiers
      - arrays of identifiers
      - relationships with only links/meta and no data
    """

    type: str = ""
    id: str = ""
    revision: Optional[str] = None
    relationships: Dict[str, Any] = Field(default_factory=dict)
    links: Dict[str, Any] = Field(default_factory=dict)
    meta: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def self_link(self) -> Optional[str]:
        return jsonapi.get_self_link({"links": self.links})

    @property
    def project_id(self) -> Optional[str]:
        parts = jsonapi.split_project_id(self.id)
        return parts[0] if parts else None

    @property
    def local_id(self) -> str:
        parts = jsonapi.split_project_id(self.id)
        return parts[1] if parts else self.id

    def relationship_ref(self, name: str) -> Optional[RelationshipRef]:
        ref, _ = extract_ref(self.relationships, name)
        return ref

    def relationship_refs(self, name: str) -> List[RelationshipRef]:
        return extract_refs(self.relationships, name)

    def to_reference(self) -> RelationshipRef:
        return RelationshipRef(kind=self.type, id=self.id, revision=self.revision)


class WorkItemAttributes(BaseModel):
    """
    Standard work item attributes. Any other key in ``attributes`` is a custom
    field and is kept in the model's extras, reachable via ``custom_fields``.
    """

    title: Optional[str] = None
    description: Optional[TextContent] = None
    type: Optional[str] = None
    status: Optional[str] = None
    resolution: Optional[str] = None
    priority: Optional[str] = None
    severity: Optional[str] = None
    due_date: Optional[str] = Field(default=None, alias="dueDate")
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    planned_start: Optional[datetime] = Field(default=None, alias="plannedStart")
    planned_end: Optional[datetime] = Field(default=None, alias="plannedEnd")
    resolved_on: Optional[datetime] = Field(default=None, alias="resolvedOn")
    initial_estimate: Optional[str] = Field(default=None, alias="initialEstimate")
    remaining_estimate: Optional[str] = Field(default=None, alias="remainingEstimate")
    time_spent: Optional[str] = Field(default=None, alias="timeSpent")
    outline_number: Optional[str] = Field(default=None, alias="outlineNumber")
    hyperlinks: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def custom_fields(self) -> CustomFields:
        # extra="allow" guarantees a dict here
        return CustomFields(self.__pydantic_extra__)


class WorkItem(Resource):
    type: str = "workitems"
    attributes: WorkItemAttributes = Field(default_factory=WorkItemAttributes)

    @property
    def custom_fields(self) -> CustomFields:
        return self.attributes.custom_fields

    @property
    def title(self) -> str:
        return self.attributes.title or ""

    @property
    def description_text(self) -> str:
        return self.attributes.description.value if self.attributes.description else ""

    @property
    def assignees(self) -> List[RelationshipRef]:
        return self.relationship_refs("assignee")

    @property
    def author(self) -> Optional[RelationshipRef]:
        return self.relationship_ref("author")

    def to_request(self) -> Dict[str, Any]:
        """Resource object for create/update bodies (custom fields included)."""
        body: Dict[str, Any] = {
            "type": self.type,
            "attributes": self.attributes.model_dump(
                mode="json", by_alias=True, exclude_none=True
            ),
        }
        if self.id:
            body["id"] = self.id
        if self.relationships:
            body["relationships"] = self.relationships
        return body


class UserAttributes(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    initials: Optional[str] = None
    disabled: bool = False
    description: Optional[TextContent] = None

    model_config = ConfigDict(extra="ignore")


class User(Resource):
    type: str = "users"
    attributes: UserAttributes = Field(default_factory=UserAttributes)

    @property
    def name(self) -> str:
        return self.attributes.name or self.id


__all__ = [
    "Resource",
    "WorkItem",
    "WorkItemAttributes",
    "User",
    "UserAttributes",
]
