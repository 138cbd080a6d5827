"""Artifact layout inspector: resolve coordinates from repository paths.

Paths follow the repository manager's default layouts:

* Maven: ``org/group/module/1.0/module-1.0[-classifier].jar``
* npm:   ``name/-/name-1.0.0.tgz`` or ``@scope/name/-/name-1.0.0.tgz``
* PyPI:  wheel / sdist / egg file names anywhere in the tree

A path that does not fit its layout yields an :class:`ArtifactLayout` whose
``is_valid`` is false; callers decide what that means.
"""

from __future__ import annotations

import posixpath
import re

from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    canonicalize_name,
    parse_sdist_filename,
    parse_wheel_filename,
)
from packaging.version import InvalidVersion

from vulngate.engines.gate.classifier import classify
from vulngate.engines.gate.models import ArtifactKey, ArtifactLayout, Ecosystem

_SNAPSHOT_SUFFIX = "-SNAPSHOT"
_NPM_FILE_RE = re.compile(r"^(?P<name>.+?)-(?P<version>\d[^/]*)\.tgz$")
_EGG_FILE_RE = re.compile(r"^(?P<name>[^-]+)-(?P<version>[^-]+)(?:-py\d+(?:\.\d+)*)?(?:-.+)?\.egg$")


def _ext(filename: str) -> str | None:
    if filename.endswith(".tar.gz"):
        return "tar.gz"
    _, dot, ext = filename.rpartition(".")
    return ext if dot else None


def _maven_layout(path: str) -> ArtifactLayout:
    segments = [s for s in path.split("/") if s]
    filename = segments[-1] if segments else path
    if len(segments) < 4:
        return ArtifactLayout(path=path, ext=_ext(filename))

    *group, module, version, filename = segments
    base_revision = version
    if version.endswith(_SNAPSHOT_SUFFIX):
        # Unique snapshots replace SNAPSHOT with a timestamp in the file name
        base_revision = version[: -len(_SNAPSHOT_SUFFIX)]

    stem = filename[: -len(".jar")] if filename.endswith(".jar") else filename
    prefix = f"{module}-{base_revision}"
    if not stem.startswith(prefix):
        return ArtifactLayout(path=path, ext=_ext(filename))

    classifier = None
    rest = stem[len(prefix):]
    if rest and version == base_revision:
        classifier = rest.lstrip("-") or None

    return ArtifactLayout(
        path=path,
        organization=".".join(group),
        module=module,
        base_revision=base_revision,
        ext="jar",
        classifier=classifier,
    )


def _npm_layout(path: str) -> ArtifactLayout:
    segments = [s for s in path.split("/") if s]
    filename = segments[-1] if segments else path

    if "-" in segments[:-1]:
        marker = segments.index("-")
        module = "/".join(segments[:marker])
        short_name = module.rsplit("/", 1)[-1]
        prefix = f"{short_name}-"
        if module and filename.startswith(prefix) and filename.endswith(".tgz"):
            version = filename[len(prefix): -len(".tgz")]
            if version:
                return ArtifactLayout(path=path, module=module, base_revision=version, ext="tgz")
        return ArtifactLayout(path=path, ext="tgz")

    match = _NPM_FILE_RE.match(filename)
    if match is None:
        return ArtifactLayout(path=path, ext="tgz")
    return ArtifactLayout(
        path=path, module=match.group("name"), base_revision=match.group("version"), ext="tgz"
    )


def _pypi_layout(path: str) -> ArtifactLayout:
    filename = posixpath.basename(path)
    ext = _ext(filename)
    try:
        if filename.endswith(".whl"):
            name, version, _build, _tags = parse_wheel_filename(filename)
        elif filename.endswith(".egg"):
            match = _EGG_FILE_RE.match(filename)
            if match is None:
                return ArtifactLayout(path=path, ext=ext)
            name, version = canonicalize_name(match.group("name")), match.group("version")
        else:
            name, version = parse_sdist_filename(filename)
    except (InvalidWheelFilename, InvalidSdistFilename, InvalidVersion):
        return ArtifactLayout(path=path, ext=ext)

    return ArtifactLayout(path=path, module=str(name), base_revision=str(version), ext=ext)


def inspect_layout(key: ArtifactKey) -> ArtifactLayout:
    """Resolve organization / module / revision for the artifact at *key*."""
    path = key.path or ""
    ecosystem = classify(path)
    if ecosystem is Ecosystem.MAVEN:
        return _maven_layout(path)
    if ecosystem is Ecosystem.NPM:
        return _npm_layout(path)
    if ecosystem is Ecosystem.PYPI:
        return _pypi_layout(path)
    return ArtifactLayout(path=path, ext=_ext(posixpath.basename(path)) if path else None)
