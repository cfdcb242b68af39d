from __future__ import annotations

from pathlib import Path

from zeroagent.config import const
from zeroagent.domain import SkillOrigin

_SCHEMES: tuple[tuple[str, SkillOrigin], ...] = (
    ("skills:", SkillOrigin.MARKETPLACE),
    ("github:", SkillOrigin.VCS_HOSTED),
    ("npm:", SkillOrigin.PACKAGE_REGISTRY),
    ("curated:", SkillOrigin.CURATED),
)
_URL_PREFIXES = ("http://", "https://", "git@")


def strip_scheme(source: str) -> str:
    s = source.strip()
    for prefix, _ in _SCHEMES:
        if s.startswith(prefix):
            return s[len(prefix):]
    return s


def detect_origin(source: str) -> SkillOrigin:
    s = source.strip()
    for prefix, origin in _SCHEMES:
        if s.startswith(prefix):
            return origin
    if s.startswith(_URL_PREFIXES):
        return SkillOrigin.DIRECT_URL
    if Path(s).expanduser().is_dir():
        return SkillOrigin.CURATED
    # bare name is marketplace shorthand
    return SkillOrigin.MARKETPLACE


def derive_skill_name(source: str) -> str:
    """``github:user/btc-tracker.git`` -> ``btc-tracker``; ``skills:weather`` -> ``weather``."""
    rest = strip_scheme(source).rstrip("/\\")
    name = rest.replace("\\", "/").split("/")[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if ":" in name:
        # git@host:repo.git without a slash
        name = name.split(":")[-1]
    return name.strip() or const.UNKNOWN_SKILL_NAME
