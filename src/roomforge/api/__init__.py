from roomforge.api.app import create_app
from roomforge.api.dependencies import Container, build_container

__all__ = ["Container", "build_container", "create_app"]
