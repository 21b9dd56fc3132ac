"""Frontend routes for entities that can appear in result rows."""

from typing import Optional

ENTITY_ROUTE_MAP: dict[str, str] = {
    "room": "/rooms/:id",
    "post": "/posts/:id",
    "room_seeking_post": "/room-seeking-posts/:id",
}

_PATH_PREFIXES: dict[str, str] = {
    "/rooms/": "room",
    "/posts/": "post",
    "/room-seeking-posts/": "room_seeking_post",
}


def build_entity_path(entity: str, entity_id: str) -> Optional[str]:
    pattern = ENTITY_ROUTE_MAP.get(entity)
    if not pattern or not entity_id:
        return None
    return pattern.replace(":id", str(entity_id))


def parse_entity_path(path: str) -> Optional[tuple[str, str]]:
    """Reverse of ``build_entity_path``: ``/rooms/abc`` -> ``("room", "abc")``."""
    if not path:
        return None
    clean = path.split("?", 1)[0].split("#", 1)[0]
    for prefix, entity in _PATH_PREFIXES.items():
        if clean.startswith(prefix):
            identifier = clean[len(prefix):].strip("/")
            if identifier and "/" not in identifier:
                return entity, identifier
    return None
