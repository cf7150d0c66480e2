"""Release publishing: GitHub releases over the REST API, Play Console placeholder."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests

from pipelinekit.step_types import StepRef

from deploid.android import project
from deploid.errors import ConfigError, PublishError
from deploid.framework.config import GithubPublishConfig
from deploid.framework.context import ExecutionContext

KIND_ID = "publish"
GITHUB_API_URL = "https://api.github.com"
GITHUB_UPLOADS_URL = "https://uploads.github.com"
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
REQUEST_TIMEOUT_SECONDS = 30
UPLOAD_TIMEOUT_SECONDS = 300

ASSET_CONTENT_TYPES: dict[str, str] = {
    ".apk": "application/vnd.android.package-archive",
    ".aab": "application/octet-stream",
}


@dataclass
class GithubReleaseClient:
    """Minimal GitHub releases client; the token lives only in the session headers."""

    repo: str
    token: str
    session: requests.Session = field(default_factory=requests.Session)
    api_url: str = GITHUB_API_URL
    uploads_url: str = GITHUB_UPLOADS_URL

    def __post_init__(self) -> None:
        self.session.headers["Authorization"] = f"Bearer {self.token}"
        self.session.headers["Accept"] = "application/vnd.github+json"

    def _check(self, response: requests.Response, action: str) -> dict[str, Any]:
        if response.status_code >= 400:
            message = ""
            try:
                message = str(response.json().get("message", ""))
            except ValueError:
                message = response.text[:200]
            raise PublishError(f"GitHub {action} failed (HTTP {response.status_code}): {message}")
        return response.json()

    def create_release(self, *, tag: str, name: str, draft: bool) -> dict[str, Any]:
        try:
            response = self.session.post(
                f"{self.api_url}/repos/{self.repo}/releases",
                json={"tag_name": tag, "name": name, "draft": draft},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
        except requests.exceptions.RequestException as exc:
            raise PublishError(f"GitHub release request failed: {exc}") from exc
        return self._check(response, "release creation")

    def upload_asset(self, release_id: int, path: Path) -> dict[str, Any]:
        content_type = ASSET_CONTENT_TYPES.get(path.suffix, "application/octet-stream")
        try:
            with path.open("rb") as f:
                response = self.session.post(
                    f"{self.uploads_url}/repos/{self.repo}/releases/{release_id}/assets",
                    params={"name": path.name},
                    headers={"Content-Type": content_type},
                    data=f,
                    timeout=UPLOAD_TIMEOUT_SECONDS,
                )
        except requests.exceptions.RequestException as exc:
            raise PublishError(f"Upload of {path.name} failed: {exc}") from exc
        return self._check(response, f"upload of {path.name}")


def release_artifacts(ctx: ExecutionContext) -> list[Path]:
    candidates = (project.RELEASE_AAB, project.RELEASE_APK, project.DEBUG_APK)
    return [
        ctx.resolve(project.ANDROID_DIR, artifact)
        for artifact in candidates
        if ctx.resolve(project.ANDROID_DIR, artifact).is_file()
    ]


def release_version(ctx: ExecutionContext) -> str:
    version = ctx.config.android.version
    if version is None:
        raise ConfigError("Missing required config key: android.version (needed for the release tag)")
    return version.name


def publish_to_github(
    ctx: ExecutionContext,
    github: GithubPublishConfig,
    *,
    session: requests.Session | None = None,
) -> dict[str, Any]:
    token = os.environ.get(GITHUB_TOKEN_ENV_VAR)
    if not token:
        raise ConfigError(f"{GITHUB_TOKEN_ENV_VAR} is not set (required for publish.github)")

    version_name = release_version(ctx)
    tag = f"v{version_name}"
    client = GithubReleaseClient(repo=github.repo, token=token, session=session or requests.Session())

    ctx.logger.info("Creating GitHub release %s in %s (draft=%s)...", tag, github.repo, github.draft)
    release = client.create_release(
        tag=tag, name=f"{ctx.config.app_name} {version_name}", draft=github.draft
    )

    artifacts = release_artifacts(ctx)
    if not artifacts:
        ctx.logger.warn("No APK/AAB artifacts found. Run 'deploid build' before publishing")
    for artifact in artifacts:
        ctx.logger.info("Uploading %s...", artifact.name)
        client.upload_asset(release["id"], artifact)

    ctx.logger.info("GitHub release ready: %s", release.get("html_url", tag))
    return release


async def publish_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("publish: publishing %s", ctx.config.app_name)

    publish = ctx.config.publish
    if publish is None or (publish.github is None and publish.play is None):
        ctx.logger.warn("No publish targets configured (publish.github or publish.play)")
        return

    if publish.play is not None:
        ctx.logger.info("Google Play publishing not yet implemented")
        ctx.logger.info("Upload %s through the Play Console for now", project.RELEASE_AAB.name)

    if publish.github is not None:
        await asyncio.to_thread(publish_to_github, ctx, publish.github)


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: publish_step,
        doc="Create a GitHub release with the built APK/AAB; Play publishing is a placeholder.",
        source="deploid.steps.publish.publish_step",
        tags=("publish",),
    ),
)
