from typing import Any, Dict, Optional, Tuple


def get_data(payload: Optional[Dict[str, Any]]) -> Any:
    """
    Returns the 'data' member of a JSON:API document, or None.
    """
    if not isinstance(payload, dict):
        return None
    return payload.get("data")


def get_attributes(resource: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Returns the 'attributes' object of a resource (empty dict if missing).
    """
    if not isinstance(resource, dict):
        return {}
    attrs = resource.get("attributes")
    return attrs if isinstance(attrs, dict) else {}


def get_relationship(
    resource: Optional[Dict[str, Any]], name: str
) -> Optional[Dict[str, Any]]:
    """
    Safely retrieves a relationship object from the 'relationships' member.
    Example: get_relationship(wi_json, 'assignee') -> {'data': [...]}
    """
    if not isinstance(resource, dict):
        return None
    rels = resource.get("relationships")
    if not isinstance(rels, dict):
        return None
    rel = rels.get(name)
    return rel if isinstance(rel, dict) else None


def get_self_link(resource: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Extracts links.self from a resource.
    Example: get_self_link(wi_json) -> 'https://host/polarion/rest/v1/projects/P/workitems/P-1'
    """
    if not isinstance(resource, dict):
        return None
    links = resource.get("links")
    if not isinstance(links, dict):
        return None
    href = links.get("self")
    return href if isinstance(href, str) else None


def split_project_id(resource_id: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Splits a project-scoped id into (project, local id).
    Example: 'MyProject/WI-123' -> ('MyProject', 'WI-123')
    Bare ids (users, projects) return None.
    """
    if not resource_id or "/" not in resource_id:
        return None
    project, _, local = resource_id.partition("/")
    if not project or not local:
        return None
    return project, local


def join_project_id(project_id: str, local_id: str) -> str:
    return f"{project_id}/{local_id}"


__all__ = [
    "get_data",
    "get_attributes",
    "get_relationship",
    "get_self_link",
    "split_project_id",
    "join_project_id",
]
