"""Data models for runner dependency resolution.

Coordinates identify a library; repository settings describe where and how
it may be fetched.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

DEFAULT_PACKAGING = "wheel"
DEFAULT_LOCAL_CACHE = Path.home() / ".tmc" / "runner-cache"


@dataclass(frozen=True)
class DependencyCoordinate:
    """A (group, artifact, version, packaging) library identifier."""
    group: str
    artifact: str
    version: str
    packaging: str = DEFAULT_PACKAGING

    @property
    def requirement(self) -> str:
        """pip requirement specifier pinning this coordinate."""
        return f"{self.artifact}=={self.version}"

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.packaging}:{self.version}"


@dataclass(frozen=True)
class RepositoryServer:
    """A package index."""
    id: str
    url: str
    username: Optional[str] = None
    password: Optional[str] = None

    def authenticated_url(self, url: Optional[str] = None) -> str:
        """Return the index URL with credentials embedded, if any."""
        url = url or self.url
        if not self.username:
            return url
        parts = urlsplit(url)
        userinfo = quote(self.username, safe="")
        if self.password:
            userinfo += ":" + quote(self.password, safe="")
        netloc = f"{userinfo}@{parts.hostname or ''}"
        if parts.port:
            netloc += f":{parts.port}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


@dataclass(frozen=True)
class RepositoryMirror:
    """Replaces the URL of servers matching `mirror_of` ("*" for all)."""
    id: str
    url: str
    mirror_of: str = "*"

    def matches(self, server_id: str) -> bool:
        patterns = [p.strip() for p in self.mirror_of.split(",")]
        return "*" in patterns or server_id in patterns


@dataclass(frozen=True)
class RepositoryProxy:
    """HTTP(S) proxy used to reach package indexes."""
    host: str
    port: int
    id: str = "default"
    protocol: str = "http"
    username: Optional[str] = None
    password: Optional[str] = None
    active: bool = True

    @property
    def url(self) -> str:
        auth = ""
        if self.username:
            auth = quote(self.username, safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            auth += "@"
        return f"{self.protocol}://{auth}{self.host}:{self.port}"


@dataclass(frozen=True)
class RepositorySettings:
    """Session-level repository settings, read-only for one invocation."""
    local_cache: Path = DEFAULT_LOCAL_CACHE
    offline: bool = False
    force_update: bool = False
    servers: tuple[RepositoryServer, ...] = field(default_factory=tuple)
    mirrors: tuple[RepositoryMirror, ...] = field(default_factory=tuple)
    proxies: tuple[RepositoryProxy, ...] = field(default_factory=tuple)

    def index_urls(self) -> list[str]:
        """Index URLs in server order, with mirrors applied."""
        urls = []
        for server in self.servers:
            mirror = next((m for m in self.mirrors if m.matches(server.id)), None)
            urls.append(server.authenticated_url(mirror.url if mirror else None))
        return urls

    @property
    def active_proxy(self) -> Optional[RepositoryProxy]:
        return next((p for p in self.proxies if p.active), None)
