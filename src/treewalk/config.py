"""Loading walk settings from TOML configuration files."""

from __future__ import annotations

import importlib.resources
import logging
import os
import tomllib
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from treewalk.attributes import UnreliableAttributes
from treewalk.constants import (
    CONFIG_BROKEN_LINKS,
    CONFIG_EXCLUDE,
    CONFIG_INCLUDE,
    CONFIG_LINKS,
    CONFIG_ORDER,
    CONFIG_PRUNE_EXCLUDED_DIRS,
    CONFIG_REPRODUCIBLE,
    CONFIG_UNRELIABLE_DIR_PLATFORMS,
    BrokenLinkAction,
    FileKind,
    LinkMode,
    TraversalOrder,
)
from treewalk.errors import ConfigLoadError
from treewalk.links import LinkPolicy
from treewalk.logging_utils import StructuredLogEvent, get_logger, log_event
from treewalk.patterns import PatternFilter

TOML_CONFIG = ".treewalk.toml"
PYPROJECT = "pyproject.toml"
ENV_CONFIG_PATH = "TREEWALK_CONFIG_PATH"

logger = get_logger(__name__)


def load_default_config() -> dict[str, Any]:
    """Return the bundled default configuration as a Python dict."""
    resource = importlib.resources.files("treewalk.resources") / "default_config.toml"
    try:
        return tomllib.loads(resource.read_text(encoding="utf-8"))
    except OSError as err:  # pragma: no cover - packaging error
        msg = f"Error loading default configuration: {err}"
        raise ConfigLoadError(msg) from err


def _parse(path: Path) -> dict[str, Any]:
    try:
        return tomlkit.loads(path.read_text(encoding="utf-8")).unwrap()
    except OSError as err:
        msg = f"Error reading {path}: {err}"
        raise ConfigLoadError(msg) from err
    except TOMLKitError as err:
        msg = f"Error parsing {path.name}: {err}"
        raise ConfigLoadError(msg) from err


def _extended_paths(path: Path, data: dict[str, Any]) -> list[Path]:
    match data.get("extends"):
        case str(single):
            entries = [single]
        case list(many):
            entries = [e for e in many if isinstance(e, str)]
        case _:
            entries = []
    return [(path.parent / entry).resolve() for entry in entries]


def load_toml_config(path: Path, *, _seen: frozenset[Path] = frozenset()) -> dict[str, Any]:
    """Load a TOML config file; files named by its ``extends`` key are merged first.

    ``extends`` paths are relative to the file naming them. A file already
    being loaded further up the chain contributes nothing.
    """
    real = path.resolve()
    if real in _seen:
        return {}
    data = _parse(path)
    merged: dict[str, Any] = {}
    for base in _extended_paths(path, data):
        if base.exists():
            merged |= load_toml_config(base, _seen=_seen | {real})
    merged |= {k: v for k, v in data.items() if k != "extends"}
    return merged


def _user_config_path() -> Path:
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    return (Path(xdg_home) if xdg_home else Path.home() / ".config") / "treewalk" / "config.toml"


def _pyproject_table(path: Path) -> dict[str, Any]:
    tool = _parse(path).get("tool")
    own = tool.get("treewalk") if isinstance(tool, dict) else None
    return own if isinstance(own, dict) else {}


@dataclass(frozen=True, slots=True)
class ConfigLayer:
    """One configuration source and how to read it."""

    path: Path
    pyproject: bool = False
    required: bool = False

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            if self.required:
                msg = f"Explicit config file not found: {self.path}"
                raise ConfigLoadError(msg)
            return {}
        return _pyproject_table(self.path) if self.pyproject else load_toml_config(self.path)


def config_layers(base_path: Path, explicit_config: Path | None = None) -> list[ConfigLayer]:
    """Return the file-based config sources for ``base_path``, lowest precedence first."""
    layers = [
        ConfigLayer(_user_config_path()),
        ConfigLayer(base_path / TOML_CONFIG),
        ConfigLayer(base_path / PYPROJECT, pyproject=True),
    ]
    if env_path := os.environ.get(ENV_CONFIG_PATH):
        layers.append(ConfigLayer(Path(env_path)))
    if explicit_config:
        layers.append(ConfigLayer(explicit_config, required=True))
    return layers


def read_config(
    *,
    base_path: Path,
    ignore_defaults: bool = False,
    explicit_config: Path | None = None,
) -> dict[str, Any]:
    """Merge the bundled defaults and every config layer; later layers win.

    Layers, low to high: the user config under ``$XDG_CONFIG_HOME``,
    ``.treewalk.toml`` and ``[tool.treewalk]`` in ``pyproject.toml`` at
    ``base_path``, ``$TREEWALK_CONFIG_PATH`` and ``explicit_config``.
    """
    cfg: dict[str, Any] = {} if ignore_defaults else load_default_config()
    for layer in config_layers(base_path, explicit_config):
        table = layer.load()
        if table:
            log_event(
                logger,
                StructuredLogEvent(
                    name="config.layer",
                    message="merged configuration layer",
                    level=logging.DEBUG,
                    context={"path": layer.path, "keys": ",".join(sorted(table))},
                ),
            )
        cfg |= table
    return cfg


def _string_list(cfg: dict[str, Any], key: str) -> tuple[str, ...]:
    value = cfg.get(key, [])
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise ConfigLoadError(msg)
    return tuple(value)


def _flag(cfg: dict[str, Any], key: str, default: bool) -> bool:  # noqa: FBT001
    value = cfg.get(key, default)
    if not isinstance(value, bool):
        msg = f"'{key}' must be true or false"
        raise ConfigLoadError(msg)
    return value


def _choice[E: StrEnum](cfg: dict[str, Any], key: str, enum: type[E], default: E) -> E:
    value = cfg.get(key, default.value)
    try:
        return enum(str(value).lower())
    except ValueError as err:
        allowed = ", ".join(m.value for m in enum)
        msg = f"'{key}' must be one of: {allowed} (got {value!r})"
        raise ConfigLoadError(msg) from err


@dataclass(frozen=True, slots=True)
class WalkSettings:
    """Typed view of a merged configuration dict."""

    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    order: TraversalOrder = TraversalOrder.PREFIX
    reproducible: bool = True
    links: LinkMode = LinkMode.FOLLOW
    broken_links: BrokenLinkAction = BrokenLinkAction.FAIL
    prune_excluded_dirs: bool = False
    unreliable_dir_platforms: tuple[str, ...] = ("win32",)

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> WalkSettings:
        """Validate ``cfg`` and convert it; raises :class:`ConfigLoadError` on bad values."""
        return cls(
            includes=_string_list(cfg, CONFIG_INCLUDE),
            excludes=_string_list(cfg, CONFIG_EXCLUDE),
            order=_choice(cfg, CONFIG_ORDER, TraversalOrder, TraversalOrder.PREFIX),
            reproducible=_flag(cfg, CONFIG_REPRODUCIBLE, True),
            links=_choice(cfg, CONFIG_LINKS, LinkMode, LinkMode.FOLLOW),
            broken_links=_choice(cfg, CONFIG_BROKEN_LINKS, BrokenLinkAction, BrokenLinkAction.FAIL),
            prune_excluded_dirs=_flag(cfg, CONFIG_PRUNE_EXCLUDED_DIRS, False),
            unreliable_dir_platforms=_string_list(cfg, CONFIG_UNRELIABLE_DIR_PLATFORMS)
            if CONFIG_UNRELIABLE_DIR_PLATFORMS in cfg
            else ("win32",),
        )

    def pattern_filter(self) -> PatternFilter:
        return PatternFilter.of(self.includes, self.excludes, prune_excluded_dirs=self.prune_excluded_dirs)

    def link_policy(self) -> LinkPolicy:
        return LinkPolicy(mode=self.links, broken=self.broken_links)

    def unreliable_attributes(self) -> UnreliableAttributes:
        return UnreliableAttributes(
            platforms=frozenset(self.unreliable_dir_platforms),
            kinds=frozenset({FileKind.DIRECTORY}),
        )


def apply_runtime_patterns(
    cfg: dict[str, Any],
    *,
    add_include: tuple[str, ...] = (),
    add_exclude: tuple[str, ...] = (),
    remove_exclude: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Apply one-off pattern adjustments from the command line to a loaded config."""
    cfg = dict(cfg)
    include = list(cfg.get(CONFIG_INCLUDE, []))
    exclude = list(cfg.get(CONFIG_EXCLUDE, []))
    for pat in add_include:
        if pat not in include:
            include.append(pat)
    for pat in add_exclude:
        if pat not in exclude:
            exclude.append(pat)
    for pat in remove_exclude:
        if pat in exclude:
            exclude.remove(pat)
    cfg[CONFIG_INCLUDE] = include
    cfg[CONFIG_EXCLUDE] = exclude
    return cfg


def load_settings(
    *,
    base_path: Path,
    explicit_config: Path | None = None,
    ignore_defaults: bool = False,
    add_include: tuple[str, ...] = (),
    add_exclude: tuple[str, ...] = (),
    overrides: dict[str, Any] | None = None,
) -> WalkSettings:
    """Read config for ``base_path``, apply runtime edits and return typed settings."""
    cfg = read_config(base_path=base_path, ignore_defaults=ignore_defaults, explicit_config=explicit_config)
    cfg = apply_runtime_patterns(cfg, add_include=add_include, add_exclude=add_exclude)
    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}
    return WalkSettings.from_config(cfg)
