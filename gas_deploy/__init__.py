"""Deployment helpers for pushing local sources to a Google Apps Script project."""

from .script_deployer import (
    ConfigurationError,
    DeployConfig,
    DeploymentError,
    DuplicateManifestError,
    FileType,
    ManifestMissingError,
    ScriptFile,
    build_script_files,
    deploy_to_apps_script,
    ensure_manifest,
)

__all__ = [
    "ConfigurationError",
    "DeployConfig",
    "DeploymentError",
    "DuplicateManifestError",
    "FileType",
    "ManifestMissingError",
    "ScriptFile",
    "build_script_files",
    "deploy_to_apps_script",
    "ensure_manifest",
]
