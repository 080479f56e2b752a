"""Versioned object stores that hold the day log files."""

from abc import ABC, abstractmethod
import base64
import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Dict, Tuple
from urllib.parse import quote

import requests

from dailylog.domain.errors import ValidationError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class ObjectStoreError(Exception):
    """A call to the backing store failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class VersionConflictError(ObjectStoreError):
    """The object changed since its version token was read."""


class ListingTruncatedError(ObjectStoreError):
    """The store returned only part of a listing."""


@dataclass
class StoredObject:
    """Object content together with its current version token."""
    path: str
    content: bytes
    version: str


class ObjectStore(ABC):
    """Abstract base class for path-keyed stores with versioned writes."""

    @abstractmethod
    def get(self, path: str) -> Optional[StoredObject]:
        """Fetch an object, or None if it does not exist."""
        pass

    @abstractmethod
    def put(self, path: str, content: bytes, version: Optional[str], message: str) -> str:
        """Create or replace an object and return its new version token.

        `version` must be None to create and must match the current token to
        replace; otherwise VersionConflictError is raised.
        """
        pass

    @abstractmethod
    def delete(self, path: str, version: str, message: str) -> None:
        """Delete an object whose current token is `version`."""
        pass

    @abstractmethod
    def list_objects(self, prefix: str) -> List[str]:
        """List object paths below `prefix`, sorted.

        Raises ListingTruncatedError when the backend cannot return the
        complete listing.
        """
        pass

    @abstractmethod
    def ping(self) -> None:
        """Raise ObjectStoreError if the store is unreachable."""
        pass

    def describe(self) -> str:
        return self.__class__.__name__


def _under(path: str, prefix: str) -> bool:
    prefix = prefix.strip("/")
    return not prefix or path == prefix or path.startswith(prefix + "/")


class InMemoryObjectStore(ObjectStore):
    """Dictionary-backed store with counter versions, for tests and dry runs."""

    def __init__(self):
        self._objects: Dict[str, Tuple[bytes, str]] = {}
        self._counter = 0

    def get(self, path: str) -> Optional[StoredObject]:
        if path not in self._objects:
            return None
        content, version = self._objects[path]
        return StoredObject(path=path, content=content, version=version)

    def put(self, path: str, content: bytes, version: Optional[str], message: str) -> str:
        current = self._objects.get(path)
        current_version = current[1] if current else None
        if version != current_version:
            raise VersionConflictError(
                f"{path}: expected version {version}, found {current_version}", status_code=409
            )
        self._counter += 1
        new_version = str(self._counter)
        self._objects[path] = (bytes(content), new_version)
        logger.debug(f"{message} ({path} -> v{new_version})")
        return new_version

    def delete(self, path: str, version: str, message: str) -> None:
        current = self._objects.get(path)
        if current is None:
            raise ObjectStoreError(f"{path}: not found", status_code=404)
        if current[1] != version:
            raise VersionConflictError(
                f"{path}: expected version {version}, found {current[1]}", status_code=409
            )
        del self._objects[path]
        logger.debug(f"{message} ({path})")

    def list_objects(self, prefix: str) -> List[str]:
        return sorted(path for path in self._objects if _under(path, prefix))

    def ping(self) -> None:
        return None


class LocalObjectStore(ObjectStore):
    """Directory-backed store; versions are SHA-1 hashes of the content."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / Path(*path.strip("/").split("/"))

    @staticmethod
    def _version(content: bytes) -> str:
        return hashlib.sha1(content).hexdigest()

    def get(self, path: str) -> Optional[StoredObject]:
        file_path = self._resolve(path)
        try:
            content = file_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ObjectStoreError(f"failed to read {file_path}: {e}")
        return StoredObject(path=path, content=content, version=self._version(content))

    def put(self, path: str, content: bytes, version: Optional[str], message: str) -> str:
        current = self.get(path)
        current_version = current.version if current else None
        if version != current_version:
            raise VersionConflictError(
                f"{path}: expected version {version}, found {current_version}", status_code=409
            )

        file_path = self._resolve(path)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_name, file_path)
        except OSError as e:
            raise ObjectStoreError(f"failed to write {file_path}: {e}")

        logger.debug(f"{message} ({file_path})")
        return self._version(content)

    def delete(self, path: str, version: str, message: str) -> None:
        current = self.get(path)
        if current is None:
            raise ObjectStoreError(f"{path}: not found", status_code=404)
        if current.version != version:
            raise VersionConflictError(
                f"{path}: expected version {version}, found {current.version}", status_code=409
            )
        try:
            self._resolve(path).unlink()
        except OSError as e:
            raise ObjectStoreError(f"failed to delete {path}: {e}")
        logger.debug(f"{message} ({path})")

    def list_objects(self, prefix: str) -> List[str]:
        base = self._resolve(prefix) if prefix.strip("/") else self.root
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self.root).as_posix()
            for p in base.rglob("*")
            if p.is_file() and not p.name.endswith(".tmp")
        )

    def ping(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ObjectStoreError(f"cannot create {self.root}: {e}")
        if not os.access(self.root, os.W_OK):
            raise ObjectStoreError(f"{self.root} is not writable")

    def describe(self) -> str:
        return f"local:{self.root}"


class GitHubObjectStore(ObjectStore):
    """Files in a GitHub repository, through the REST contents API.

    Version tokens are blob SHAs; GitHub rejects a write whose SHA is stale.
    """

    def __init__(
        self,
        repo: str,
        token: str,
        branch: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        if not token:
            raise ValidationError("github.token", "is required")
        parts = (repo or "").split("/")
        if len(parts) != 2 or not all(parts):
            raise ValidationError("github.repo", "must be in format 'owner/repo'")

        self.owner, self.repo = parts
        self.branch = branch
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    @property
    def _repo_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}"

    def _contents_url(self, path: str) -> str:
        return f"{self._repo_url}/contents/{quote(path.strip('/'))}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ObjectStoreError(f"{method} {url} failed: {e}")

    @staticmethod
    def _error(response: requests.Response, what: str) -> ObjectStoreError:
        try:
            detail = response.json().get("message", "")
        except ValueError:
            detail = response.text
        message = f"{what}: GitHub returned {response.status_code} {detail}".strip()
        if response.status_code == 409 or (
            response.status_code == 422 and "sha" in detail.lower()
        ):
            return VersionConflictError(message, status_code=response.status_code)
        return ObjectStoreError(message, status_code=response.status_code)

    def get(self, path: str) -> Optional[StoredObject]:
        params = {"ref": self.branch} if self.branch else None
        response = self._request("GET", self._contents_url(path), params=params)
        if response.status_code == 404:
            return None
        if not response.ok:
            raise self._error(response, f"get {path}")

        data = response.json()
        if isinstance(data, list):
            raise ObjectStoreError(f"get {path}: path is a directory")

        if data.get("encoding") == "base64":
            content = base64.b64decode(data.get("content", ""))
        else:
            # Files over 1 MB come back without inline content
            raw = self._request("GET", data["download_url"])
            if not raw.ok:
                raise self._error(raw, f"download {path}")
            content = raw.content

        return StoredObject(path=path, content=content, version=data["sha"])

    def put(self, path: str, content: bytes, version: Optional[str], message: str) -> str:
        body = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if version:
            body["sha"] = version
        if self.branch:
            body["branch"] = self.branch

        response = self._request("PUT", self._contents_url(path), json=body)
        if not response.ok:
            raise self._error(response, f"put {path}")
        return response.json()["content"]["sha"]

    def delete(self, path: str, version: str, message: str) -> None:
        body = {"message": message, "sha": version}
        if self.branch:
            body["branch"] = self.branch

        response = self._request("DELETE", self._contents_url(path), json=body)
        if not response.ok:
            raise self._error(response, f"delete {path}")

    def list_objects(self, prefix: str) -> List[str]:
        ref = quote(self.branch or "HEAD")
        response = self._request(
            "GET", f"{self._repo_url}/git/trees/{ref}", params={"recursive": "1"}
        )
        # 409 is what GitHub answers for a repository without commits
        if response.status_code in (404, 409):
            return []
        if not response.ok:
            raise self._error(response, f"list {prefix}")

        data = response.json()
        if data.get("truncated"):
            raise ListingTruncatedError(f"list {prefix}: GitHub truncated the tree listing")

        return sorted(
            item["path"]
            for item in data.get("tree", [])
            if item.get("type") == "blob" and _under(item["path"], prefix)
        )

    def ping(self) -> None:
        response = self._request("GET", self._repo_url)
        if not response.ok:
            raise self._error(response, f"access {self.owner}/{self.repo}")

    def describe(self) -> str:
        return f"github:{self.owner}/{self.repo}"
