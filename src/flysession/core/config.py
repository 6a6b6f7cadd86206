# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Layered session configuration: packaged defaults, files, profiles, environment."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")

_PREFIX_ATTR = "__flysession_config_prefix__"
_ENV_PREFIX = "FLYSESSION_"
_DEFAULTS_RESOURCE = "flysession-defaults.yaml"
_DEFAULTS_SOURCE = f"{_DEFAULTS_RESOURCE} (packaged defaults)"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10

_MISSING = object()

_COERCERS: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: lambda raw: raw.strip().lower() in ("true", "1", "yes", "on"),
}


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Declare the config section a settings class binds to.

    Apply it to a dataclass or a pydantic ``BaseModel``::

        @config_properties(prefix="flysession.session")
        class SessionProperties(BaseModel):
            cookie_name: str = "flysession"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def _lookup(data: Mapping[str, Any], dotted: str) -> Any:
    """Walk *data* along a dot-separated path; ``_MISSING`` if any hop fails."""
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, Mapping) or node.get(part) is None:
            return _MISSING
        node = node[part]
    return node


def _merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        return tomllib.loads(path.read_text()) or {}
    return yaml.safe_load(path.read_text()) or {}


def _packaged_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("flysession.resources").joinpath(_DEFAULTS_RESOURCE)
    return yaml.safe_load(resource.read_text()) or {}


def env_var_for(key: str) -> str:
    """Environment variable that overrides *key*.

    ``flysession.session.cookie-name`` maps to ``FLYSESSION_SESSION_COOKIE_NAME``;
    keys outside ``flysession.`` keep their full path.
    """
    path = key.removeprefix("flysession.")
    return _ENV_PREFIX + re.sub(r"[.\-]", "_", path).upper()


class Config:
    """Session settings as nested mappings, read by dotted key.

    Lookup order, first hit wins:

    1. ``FLYSESSION_*`` environment variables (see :func:`env_var_for`)
    2. values from the data passed in or loaded from files
    3. packaged defaults, then model defaults at :meth:`bind` time
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Where the data came from, in merge order."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def defaults(cls) -> Config:
        """A config holding only the packaged defaults."""
        config = cls(_packaged_defaults())
        config._sources.append(_DEFAULTS_SOURCE)
        return config

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load *path* (YAML, or TOML by suffix) over the packaged defaults.

        Each active profile adds ``{stem}-{profile}{suffix}`` from the same
        directory when it exists; later profiles win. A missing *path* leaves
        just the defaults.
        """
        path = Path(path)
        layers: list[tuple[str, dict[str, Any]]] = []
        if load_defaults:
            layers.append((_DEFAULTS_SOURCE, _packaged_defaults()))

        if path.exists():
            layers.append((str(path), _read_file(path)))
            for profile in active_profiles or ():
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.exists():
                    layers.append((f"{overlay} (profile: {profile})", _read_file(overlay)))

        data: dict[str, Any] = {}
        for _, layer in layers:
            data = _merge(data, layer)
        config = cls(data)
        config._sources = [source for source, _ in layers]
        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted *key*, or *default*.

        An environment override always wins. String values have their
        ``${...}`` placeholders expanded.
        """
        override = os.environ.get(env_var_for(key))
        if override is not None:
            return override

        value = _lookup(self._data, key)
        if value is _MISSING:
            return default
        if isinstance(value, str):
            return self._expand(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """The mapping under *prefix*, or an empty dict."""
        section = _lookup(self._data, prefix)
        return section if isinstance(section, dict) else {}

    def _expand(self, value: str, depth: int = 0) -> str:
        """Expand ``${ref}`` and ``${ref:fallback}`` in *value*.

        ``ref`` is looked up as an environment variable first, then as a
        dotted config key.
        """
        if "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references."
            )

        def substitute(match: re.Match[str]) -> str:
            ref, sep, fallback = match.group(1).partition(":")
            from_env = os.environ.get(ref)
            if from_env is not None:
                return from_env
            found = _lookup(self._data, ref)
            if found is not _MISSING:
                return self._expand(str(found), depth + 1)
            if sep:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}': not found in environment or config")

        return _PLACEHOLDER.sub(substitute, value)

    def _section_for(self, prefix: str, fields: list[str]) -> dict[str, Any]:
        """Section under *prefix* with snake_case keys and env overrides applied."""
        section = {key.replace("-", "_"): value for key, value in self.get_section(prefix).items()}
        for name in fields:
            override = os.environ.get(env_var_for(f"{prefix}.{name}"))
            if override is not None:
                section[name] = override
        return section

    def bind(self, settings_cls: type[T]) -> T:
        """Build *settings_cls* from the section named by its ``@config_properties``.

        Pydantic models are validated with ``model_validate``; validation
        errors become ``ValueError``. Dataclass fields typed ``int``,
        ``float`` or ``bool`` are coerced from string values.
        """
        prefix = getattr(settings_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{settings_cls.__name__} is not decorated with @config_properties")

        if issubclass(settings_cls, BaseModel):
            section = self._section_for(prefix, list(settings_cls.model_fields))
            try:
                return cast(T, settings_cls.model_validate(section))
            except ValidationError as exc:
                raise ValueError(
                    f"Configuration validation failed for '{settings_cls.__name__}' (prefix='{prefix}'):\n{exc}"
                ) from exc

        fields = [f.name for f in dataclasses.fields(settings_cls)]  # type: ignore[arg-type]
        section = self._section_for(prefix, fields)
        hints = get_type_hints(settings_cls)
        kwargs: dict[str, Any] = {}
        for name in fields:
            if name not in section:
                continue
            value = section[name]
            coerce = _COERCERS.get(hints.get(name))
            kwargs[name] = coerce(value) if coerce is not None and isinstance(value, str) else value
        return settings_cls(**kwargs)
