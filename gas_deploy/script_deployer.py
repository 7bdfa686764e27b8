"""Push the local ``src`` directory to a Google Apps Script project.

This module provides a small CLI that reads every file in the source directory,
turns it into an Apps Script file descriptor and overwrites the remote project
content in a single ``projects.updateContent`` call. Credentials come from the
``OAUTH_CLIENT_ID``, ``OAUTH_CLIENT_SECRET`` and ``OAUTH_REFRESH_TOKEN``
environment variables and the target project from ``GAS_PROJECT_ID``.
"""
from __future__ import annotations

import argparse
import enum
import logging
import os
import pathlib
import sys
from dataclasses import dataclass
from typing import Any, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient import errors as api_errors
from googleapiclient.discovery import build

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "appsscript.json"
MANIFEST_NAME = "appsscript"
DEFAULT_SOURCE_DIR = "src"
DEFAULT_REDIRECT_URI = "http://localhost:3000/oauth2callback"
TOKEN_URI = "https://oauth2.googleapis.com/token"
SCRIPT_SCOPES = ["https://www.googleapis.com/auth/script.projects"]


class DeploymentError(RuntimeError):
    """Base error for a deployment that cannot go ahead."""


class ConfigurationError(DeploymentError, ValueError):
    """Required configuration is missing."""


class ManifestMissingError(DeploymentError):
    """The source directory has no manifest file."""


class DuplicateManifestError(DeploymentError):
    """More than one source file maps to the manifest name."""


class FileType(str, enum.Enum):
    JSON = "JSON"
    SERVER_JS = "SERVER_JS"


@dataclass(frozen=True)
class ScriptFile:
    """One file as the Apps Script API understands it."""

    name: str
    type: FileType
    source: str

    def to_api(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type.value, "source": self.source}


@dataclass(frozen=True)
class DeployConfig:
    """Everything a single deployment needs, resolved once at startup."""

    client_id: Optional[str]
    client_secret: Optional[str]
    refresh_token: Optional[str]
    project_id: Optional[str]
    redirect_uri: str = DEFAULT_REDIRECT_URI
    source_dir: str = DEFAULT_SOURCE_DIR

    @classmethod
    def from_env(
        cls,
        *,
        project_id: Optional[str] = None,
        source_dir: Optional[str] = None,
    ) -> "DeployConfig":
        """Read the OAuth client and target project from the environment.

        Explicit arguments take precedence over the environment variables.
        ``redirect_uri`` keeps its default; the refresh-token grant never sends it.
        """
        return cls(
            client_id=os.getenv("OAUTH_CLIENT_ID"),
            client_secret=os.getenv("OAUTH_CLIENT_SECRET"),
            refresh_token=os.getenv("OAUTH_REFRESH_TOKEN"),
            project_id=project_id or os.getenv("GAS_PROJECT_ID"),
            source_dir=source_dir or DEFAULT_SOURCE_DIR,
        )


def _strip_extension(filename: str) -> str:
    # "foo." -> "foo", ".eslintrc" -> ".eslintrc"
    base, sep, _ = filename.rpartition(".")
    return base if sep and base else filename


def _describe(path: pathlib.Path) -> ScriptFile:
    # Anything that is not the manifest ships as server code, whatever its extension.
    if path.name == MANIFEST_FILENAME:
        name, file_type = MANIFEST_NAME, FileType.JSON
    else:
        name, file_type = _strip_extension(path.name), FileType.SERVER_JS
    return ScriptFile(name=name, type=file_type, source=path.read_text(encoding="utf-8"))


def build_script_files(source_dir: str | os.PathLike[str]) -> list[ScriptFile]:
    """Turn every direct entry of ``source_dir`` into a file descriptor, ordered by filename."""
    source = pathlib.Path(source_dir)
    return [_describe(source / entry) for entry in sorted(os.listdir(source))]


def ensure_manifest(files: list[ScriptFile]) -> None:
    count = sum(1 for f in files if f.name == MANIFEST_NAME)
    if count == 0:
        raise ManifestMissingError(f"{MANIFEST_FILENAME} is missing in the source directory")
    if count > 1:
        raise DuplicateManifestError(
            f"{count} files map to '{MANIFEST_NAME}'; only {MANIFEST_FILENAME} may use that name"
        )


def build_credentials(config: DeployConfig) -> Credentials:
    """Create refresh-token user credentials; the access token is fetched lazily on first use."""
    return Credentials(
        token=None,
        refresh_token=config.refresh_token,
        client_id=config.client_id,
        client_secret=config.client_secret,
        token_uri=TOKEN_URI,
        scopes=SCRIPT_SCOPES,
    )


def build_script_service(config: DeployConfig) -> Any:
    return build("script", "v1", credentials=build_credentials(config), cache_discovery=False)


def deploy_to_apps_script(config: DeployConfig, *, service: Any = None) -> dict[str, Any]:
    """Overwrite the remote project with the contents of the source directory.

    Returns the raw ``updateContent`` response.
    """
    if not config.project_id:
        raise ConfigurationError("GAS_PROJECT_ID environment variable is not set")

    files = build_script_files(config.source_dir)
    logger.debug("Collected %d file(s) from %s", len(files), config.source_dir)
    ensure_manifest(files)

    if service is None:
        service = build_script_service(config)

    print(f"Deploying to project: {config.project_id}")
    request = service.projects().updateContent(
        scriptId=config.project_id,
        body={"files": [f.to_api() for f in files]},
    )
    return request.execute()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Push the local source directory to a Google Apps Script project.")
    parser.add_argument(
        "--project",
        dest="project",
        help="Apps Script project ID. Defaults to GAS_PROJECT_ID.",
    )
    parser.add_argument(
        "--source",
        dest="source",
        help=f"Directory holding the script files. Defaults to ./{DEFAULT_SOURCE_DIR}.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(level=logging.DEBUG, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    _configure_logging(args.verbose)
    config = DeployConfig.from_env(project_id=args.project, source_dir=args.source)
    try:
        response = deploy_to_apps_script(config)
    except (
        RuntimeError,
        OSError,
        ValueError,
        GoogleAuthError,
        api_errors.Error,
        httplib2.HttpLib2Error,
    ) as exc:
        print(f"Deployment failed: {exc}", file=sys.stderr)
        return 1

    print("Deployment complete!", response)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
