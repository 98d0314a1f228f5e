from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

VARIANTS = ("minimal", "full")

_HOOK_COMMAND = re.compile(r"\.claude/hooks/([^\"'\s/]+)")


def _manifests_root() -> Path:
    # autonomy_installer/lib/manifests.py -> autonomy_installer/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml_rel(rel_path: str) -> Dict[str, Any]:
    """Load a YAML manifest shipped with the package (manifests/...)."""

    p = _manifests_root() / rel_path.lstrip("/")
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


@dataclass(frozen=True)
class AssetCategory:
    name: str
    source: str
    dest: str
    pattern: Optional[str] = None


@dataclass(frozen=True)
class Components:
    raw: Dict[str, Any]

    @property
    def remote_name(self) -> str:
        return str(self.raw.get("remote_name") or "autonomous-system")

    @property
    def subtree_prefix(self) -> str:
        return str(self.raw.get("subtree_prefix") or ".autonomous-system")

    @property
    def layouts(self) -> Dict[str, str]:
        return dict(self.raw.get("layouts") or {})

    @property
    def layout_marker(self) -> str:
        return str(self.raw.get("layout_marker") or "hooks")

    @property
    def scaffold(self) -> List[str]:
        return [str(d) for d in (self.raw.get("scaffold") or [])]

    @property
    def settings_path(self) -> str:
        return str(self.raw.get("settings_path") or ".claude/settings.json")

    def _categories(self, key: str) -> List[AssetCategory]:
        out: List[AssetCategory] = []
        for name, spec in (self.raw.get(key) or {}).items():
            spec = spec or {}
            out.append(
                AssetCategory(
                    name=str(name),
                    source=str(spec.get("source") or name),
                    dest=str(spec["dest"]),
                    pattern=spec.get("pattern"),
                )
            )
        return out

    @property
    def links(self) -> List[AssetCategory]:
        return self._categories("links")

    @property
    def copies(self) -> List[AssetCategory]:
        return self._categories("copies")

    def section(self, key: str) -> Dict[str, Any]:
        return dict(self.raw.get(key) or {})


def load_components() -> Components:
    return Components(raw=load_yaml_rel("components.yaml"))


@dataclass(frozen=True)
class VariantManifest:
    name: str
    settings: Dict[str, Any]

    @property
    def integration_points(self) -> List[str]:
        return list((self.settings.get("hooks") or {}).keys())

    @property
    def hooks(self) -> List[str]:
        """Hook script names wired into the settings, in first-seen order."""

        return hook_names(self.settings)


def hook_names(settings: Mapping[str, Any]) -> List[str]:
    names: List[str] = []
    for groups in (settings.get("hooks") or {}).values():
        for group in groups or []:
            for hook in group.get("hooks") or []:
                m = _HOOK_COMMAND.search(str(hook.get("command") or ""))
                if m and m.group(1) not in names:
                    names.append(m.group(1))
    return names


def load_variant(name: str) -> VariantManifest:
    if name not in VARIANTS:
        raise ValueError(f"Unknown configuration variant: {name} (expected one of {', '.join(VARIANTS)})")
    raw = load_yaml_rel(f"variants/{name}.yaml")
    settings = raw.get("settings") or {}
    if not isinstance(settings, dict):
        raise ValueError(f"variants/{name}.yaml: settings must be a mapping")
    return VariantManifest(name=name, settings=settings)
