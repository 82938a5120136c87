# -----------------------------------------------------------------------------
# GitHub Contents API document store.
#
# The event collection lives in a single JSON file inside a repository. The
# Contents API gives us exactly the primitives the write path needs:
#
#   GET /repos/{owner}/{repo}/contents/{path}[?ref=branch]
#       -> {"content": <base64>, "sha": <blob sha>, ...}
#
#   PUT /repos/{owner}/{repo}/contents/{path}
#       body {"message", "content": <base64>, "sha": <blob sha read>, "branch"?}
#       -> 200/201 {"content": {"sha": <new blob sha>}, "commit": {...}}
#       -> 409 when the supplied sha is no longer the file's current sha
#
# The blob sha is the version token. Every successful PUT is a commit, so the
# write message doubles as the audit trail.
#
# HTTP goes through `urllib.request` behind the `_request()` seam. Unit tests
# patch that method, or `urlopen` beneath it, so no real network I/O happens.
# -----------------------------------------------------------------------------
from __future__ import annotations

import base64
import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from annals.core.contracts import EventCollection
from annals.core.errors import DocumentCorrupt, StoreUnavailable, VersionConflict
from annals.core.settings import Settings, get_logger

from .base import Snapshot

logger = get_logger("annals.storage.github")


@dataclass(slots=True)
class GitHubDocumentStore:
    """Versioned document store backed by one file in a GitHub repository.

    Parameters
    ----------
    token:
        Personal access or app token with ``contents: write`` on the repo.
    owner, repo:
        Repository coordinates.
    path:
        File path of the JSON document inside the repository.
    branch:
        Optional branch; the repository default branch when ``None``.
    api_url:
        API root, overridable for GitHub Enterprise.
    timeout_seconds:
        Per-request network timeout.
    """

    token: str
    owner: str
    repo: str
    path: str = "data/events.json"
    branch: str | None = None
    api_url: str = "https://api.github.com"
    timeout_seconds: float = 10.0

    # --------------------------------------------------------------------- #
    # Constructors
    # --------------------------------------------------------------------- #
    @classmethod
    def from_settings(cls, settings: Settings) -> GitHubDocumentStore:
        """Build a store from settings, failing fast on missing coordinates."""
        missing = [
            name
            for name, value in (
                ("GITHUB_TOKEN", settings.github_token),
                ("GITHUB_OWNER", settings.github_owner),
                ("GITHUB_REPO", settings.github_repo),
            )
            if not value
        ]
        if missing:
            raise RuntimeError(f"GitHub store is not configured; missing {', '.join(missing)}")
        assert settings.github_token is not None
        return cls(
            token=settings.github_token.get_secret_value(),
            owner=str(settings.github_owner),
            repo=str(settings.github_repo),
            path=settings.data_path,
            branch=settings.github_branch,
            api_url=settings.github_api_url,
            timeout_seconds=settings.http_timeout_seconds,
        )

    @property
    def url(self) -> str:
        path = urllib.parse.quote(self.path.lstrip("/"))
        return f"{self.api_url.rstrip('/')}/repos/{self.owner}/{self.repo}/contents/{path}"

    # --------------------------------------------------------------------- #
    # DocumentStore API
    # --------------------------------------------------------------------- #
    def read(self) -> Snapshot:
        """Fetch and parse the document; the blob sha is the version token."""
        url = self.url
        if self.branch:
            url += "?" + urllib.parse.urlencode({"ref": self.branch})

        status, body = self._request("GET", url)
        if status != 200:
            raise StoreUnavailable(
                f"GitHub read failed with HTTP {status}: {_excerpt(body)}", status=status
            )

        payload = _decode_json(body)
        content = payload.get("content")
        sha = payload.get("sha")
        if not isinstance(content, str) or not isinstance(sha, str) or not sha:
            raise DocumentCorrupt(f"GitHub response for {self.path} has no content/sha")

        try:
            raw = base64.b64decode(content)
            collection = EventCollection.from_document(raw)
        except ValueError as exc:
            raise DocumentCorrupt(f"{self.path} is malformed: {exc}") from exc

        logger.debug("Read %s at %s (%d events)", self.path, sha, len(collection.events))
        return Snapshot(collection=collection, token=sha)

    def write(self, collection: EventCollection, token: str, message: str) -> str:
        """Commit ``collection`` if ``token`` is still the file's current sha."""
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(collection.to_document()).decode("ascii"),
            "sha": token,
        }
        if self.branch:
            payload["branch"] = self.branch

        status, body = self._request("PUT", self.url, payload)
        if status == 409:
            logger.info("Write to %s rejected: sha %s is stale", self.path, token)
            raise VersionConflict(f"{self.path} was modified concurrently (sha {token} is stale)")
        if status not in (200, 201):
            raise StoreUnavailable(
                f"GitHub write failed with HTTP {status}: {_excerpt(body)}", status=status
            )

        content = _decode_json(body).get("content")
        new_sha = content.get("sha") if isinstance(content, Mapping) else None
        if not isinstance(new_sha, str) or not new_sha:
            logger.warning("Write to %s returned HTTP %d without content.sha; it may be committed",
                           self.path, status)
            raise StoreUnavailable("GitHub write response carries no content.sha", status=status)

        logger.info("Committed %s: %s (%s -> %s)", self.path, message, token, new_sha)
        return new_sha

    # --------------------------------------------------------------------- #
    # Internal helpers (test seams)
    # --------------------------------------------------------------------- #
    def _request(
        self,
        method: str,
        url: str,
        payload: Mapping[str, Any] | None = None,
    ) -> tuple[int, bytes]:
        """Perform one HTTP call and return ``(status, body)``.

        HTTP error statuses are returned, not raised, so the callers can map
        them. Transport failures raise :class:`StoreUnavailable`, including a
        connection that drops while the body is being read.
        """
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        request = urllib.request.Request(url=url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as exc:
            try:
                return exc.code, exc.read()
            except (OSError, http.client.HTTPException) as read_exc:
                raise StoreUnavailable(
                    f"GitHub network error: {read_exc!r}", status=exc.code
                ) from read_exc
        except (OSError, http.client.HTTPException) as exc:
            # URLError and TimeoutError are OSErrors; IncompleteRead is not.
            raise StoreUnavailable(f"GitHub network error: {exc!r}") from exc


def _decode_json(body: bytes) -> dict[str, Any]:
    try:
        decoded = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StoreUnavailable("GitHub response is not valid JSON") from exc
    if not isinstance(decoded, dict):
        raise StoreUnavailable("GitHub response is not a JSON object")
    return decoded


def _excerpt(body: bytes, limit: int = 200) -> str:
    return body[:limit].decode("utf-8", errors="replace")


__all__ = ["GitHubDocumentStore"]
