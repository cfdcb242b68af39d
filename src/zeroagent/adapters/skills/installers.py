from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from zeroagent.adapters.fs.path_provider import PathProvider
from zeroagent.domain import SkillOrigin
from zeroagent.ports import Installer
from zeroagent.services.skill.errors import InstallFailure
from zeroagent.services.skill.source import detect_origin, strip_scheme

_log = logging.getLogger("zeroagent.installer")

_MANIFEST_NAMES = ("skill.yaml", "manifest.yaml", "skill.json")


def read_manifest(skill_dir: Path) -> Optional[dict[str, Any]]:
    """Return the skill manifest as a dict, or ``None`` when there is none."""
    for fname in _MANIFEST_NAMES:
        p = skill_dir / fname
        if not p.is_file():
            continue
        try:
            text = p.read_text(encoding="utf-8")
            data = json.loads(text) if p.suffix == ".json" else yaml.safe_load(text)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            _log.warning("installer.bad_manifest", extra={"extra": {"path": str(p), "error": str(exc)}})
            return None
        return data if isinstance(data, dict) else None
    return None


def _git_url(source: str) -> str:
    ref = strip_scheme(source)
    if source.startswith("github:"):
        return f"https://github.com/{ref}"
    return ref


class GitInstaller:
    """Clones a repository with GitPython into the skill directory."""

    def __init__(self, paths: PathProvider, *, depth: Optional[int] = 1):
        self.paths = paths
        self.depth = depth

    def describe(self, source: str, skill_name: str) -> Optional[Mapping[str, Any]]:
        # manifest is only known up front when the checkout is already there
        dest = self.paths.skill_dir(skill_name)
        return read_manifest(dest) if dest.is_dir() else None

    def materialize(self, source: str, skill_name: str) -> Path:
        dest = self.paths.skill_dir(skill_name)
        url = _git_url(source)
        dest.parent.mkdir(parents=True, exist_ok=True)
        from git import Repo  # local import: GitPython probes the git binary on import
        from git.exc import GitError

        kwargs = {"depth": self.depth} if self.depth else {}
        try:
            Repo.clone_from(url, dest, **kwargs)
        except GitError as exc:
            raise InstallFailure(skill_name, source=source, detail=str(exc)) from exc
        return dest

    def remove(self, skill_name: str) -> bool:
        return remove_skill_dir(self.paths, skill_name)


class LocalDirInstaller:
    """Copies a skill from a local directory (curated catalog, development checkout)."""

    def __init__(self, paths: PathProvider):
        self.paths = paths

    def _src(self, source: str) -> Path:
        return Path(strip_scheme(source)).expanduser().resolve()

    def describe(self, source: str, skill_name: str) -> Optional[Mapping[str, Any]]:
        src = self._src(source)
        return read_manifest(src) if src.is_dir() else None

    def materialize(self, source: str, skill_name: str) -> Path:
        src = self._src(source)
        if not src.is_dir():
            raise InstallFailure(skill_name, source=source, detail=f"{src} is not a directory")
        dest = self.paths.skill_dir(skill_name)
        try:
            shutil.copytree(src, dest, ignore=shutil.ignore_patterns(".git", "__pycache__"), dirs_exist_ok=True)
        except (OSError, shutil.Error) as exc:
            raise InstallFailure(skill_name, source=source, detail=str(exc)) from exc
        return dest

    def remove(self, skill_name: str) -> bool:
        return remove_skill_dir(self.paths, skill_name)


def remove_skill_dir(paths: PathProvider, skill_name: str) -> bool:
    p = paths.skill_dir(skill_name)
    if not p.exists():
        _log.info("installer.remove_missing", extra={"extra": {"skill": skill_name}})
        return False
    if p.is_dir():
        shutil.rmtree(p)
    else:
        p.unlink()
    return True


class SourceInstaller:
    """Routes a source descriptor to the installer registered for its origin.

    Origins without a backend (marketplace, package registry by default) fail
    with ``InstallFailure``; fetching them is left to a plugged-in backend.
    """

    def __init__(self, paths: PathProvider, backends: Optional[Mapping[SkillOrigin, Installer]] = None):
        self.paths = paths
        if backends is None:
            git = GitInstaller(paths)
            backends = {
                SkillOrigin.VCS_HOSTED: git,
                SkillOrigin.DIRECT_URL: git,
                SkillOrigin.CURATED: LocalDirInstaller(paths),
            }
        self.backends: dict[SkillOrigin, Installer] = dict(backends)

    def register_backend(self, origin: SkillOrigin, installer: Installer) -> None:
        self.backends[SkillOrigin(origin)] = installer

    def _backend(self, source: str) -> Optional[Installer]:
        return self.backends.get(detect_origin(source))

    def describe(self, source: str, skill_name: str) -> Optional[Mapping[str, Any]]:
        backend = self._backend(source)
        if backend is None:
            return None
        return backend.describe(source, skill_name)

    def materialize(self, source: str, skill_name: str) -> Path:
        origin = detect_origin(source)
        backend = self.backends.get(origin)
        if backend is None:
            raise InstallFailure(skill_name, source=source, detail=f"no installer for {origin.value} sources")
        _log.info("installer.materialize", extra={"extra": {"skill": skill_name, "origin": origin.value}})
        return backend.materialize(source, skill_name)

    def remove(self, skill_name: str) -> bool:
        return remove_skill_dir(self.paths, skill_name)
