"""Configuration loading for pipefmt.

Configuration is a YAML document (``pipefmt.yaml`` or ``.pipefmt.yaml``)
looked up from the target file's directory upwards.  It maps filetypes
to formatter stages plus the injection policies used by the discovery
step.

Example
-------
::

    filetype:
      python: "black -q -"
      markdown:
        - "prettier --parser markdown"
      _: {exe: sed, args: ["s/[[:space:]]*$//"]}
    injections:
      auto_indent: {python: true}
      disable_injected: {markdown: [json]}
    languages: {py: python}
    parsers: {markdown: fenced}
    extensions: {md: markdown}
    timeout: 5.0
    concurrency: 10

The ``_`` filetype is the fallback used for any filetype without its own
entry.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

from pipefmt.config.stages import FormatterStage, normalize_stages
from pipefmt.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES: tuple[str, ...] = ("pipefmt.yaml", ".pipefmt.yaml")
FALLBACK_FILETYPE = "_"
ALL_FILETYPES = "*"

DEFAULT_TIMEOUT = 5.0
DEFAULT_CONCURRENCY = 10

DEFAULT_EXTENSIONS: dict[str, str] = {
    "c": "c",
    "css": "css",
    "go": "go",
    "html": "html",
    "js": "javascript",
    "json": "json",
    "lua": "lua",
    "md": "markdown",
    "markdown": "markdown",
    "py": "python",
    "rs": "rust",
    "sh": "sh",
    "sql": "sql",
    "toml": "toml",
    "ts": "typescript",
    "yaml": "yaml",
    "yml": "yaml",
}

DEFAULT_PARSERS: dict[str, str] = {"markdown": "fenced"}

AutoIndent = Union[bool, Callable[[], bool]]


@dataclass
class FormatterConfig:
    """Resolved configuration: stages per filetype plus injection policies.

    Parameters
    ----------
    filetypes:
        Ordered formatter stages keyed by filetype.
    auto_indent:
        Filetypes whose injected output is re-indented to the region's
        original column.  Values may be booleans or zero-arg callables.
    disable_injected:
        Host filetype (or ``"*"``) to the injected filetypes that must
        not be formatted inside it.
    languages:
        Syntax-tree language identifier to filetype aliases.
    parsers:
        Filetype to syntax provider name.
    extensions:
        File suffix (without the dot) to filetype.
    attached:
        Identifiers of attached formatters preferred over the pipeline
        when a filetype has no stages of its own.
    timeout:
        Per-process wall-clock budget in seconds.
    concurrency:
        Maximum number of injections formatted at once.
    source:
        Path of the file this configuration was read from, if any.
    """

    filetypes: dict[str, tuple[FormatterStage, ...]] = field(default_factory=dict)
    auto_indent: dict[str, AutoIndent] = field(default_factory=dict)
    disable_injected: dict[str, tuple[str, ...]] = field(default_factory=dict)
    languages: dict[str, str] = field(default_factory=dict)
    parsers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PARSERS))
    extensions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_EXTENSIONS))
    attached: tuple[str, ...] = ()
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    source: str | None = None

    # ------------------------------------------------------------------
    # Stage lookup
    # ------------------------------------------------------------------

    def stages_for(self, filetype: str | None) -> tuple[FormatterStage, ...] | None:
        """Return the stages for ``filetype``, falling back to ``_``.

        Returns ``None`` when neither the filetype nor the fallback is
        configured.  An explicitly empty list yields an empty tuple.
        """
        if filetype and filetype in self.filetypes:
            return self.filetypes[filetype]
        return self.filetypes.get(FALLBACK_FILETYPE)

    def resolve_filetype(self, filetype: str) -> str:
        """Return ``filetype`` if it has its own entry, else ``_``."""
        return filetype if filetype in self.filetypes else FALLBACK_FILETYPE

    def filetype_for_language(self, language: str) -> str | None:
        """Map a syntax-tree language to a configured filetype, if any."""
        filetype = self.languages.get(language, language)
        return filetype if self.stages_for(filetype) is not None else None

    def parser_for(self, filetype: str) -> str:
        """Return the syntax provider name used to parse ``filetype``."""
        return self.parsers.get(filetype, filetype)

    def filetype_for_path(self, path: str | Path) -> str | None:
        """Guess a filetype from a file suffix."""
        suffix = Path(path).suffix.lstrip(".").lower()
        return self.extensions.get(suffix) if suffix else None

    # ------------------------------------------------------------------
    # Injection policies
    # ------------------------------------------------------------------

    def injection_disabled(self, host: str, injected: str) -> bool:
        """Return True if ``injected`` must not be formatted inside ``host``."""
        disabled = (*self.disable_injected.get(host, ()), *self.disable_injected.get(ALL_FILETYPES, ()))
        return any(item in (injected, ALL_FILETYPES) for item in disabled)

    def auto_indent_enabled(self, filetype: str) -> bool:
        """Evaluate the auto-indent policy for ``filetype``.

        A callable policy that raises counts as disabled.
        """
        policy = self.auto_indent.get(filetype)
        if not callable(policy):
            return bool(policy)
        try:
            return bool(policy())
        except Exception:  # noqa: BLE001
            logger.exception("Auto-indent policy for %s raised; not re-indenting", filetype)
            return False


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def _str_map(value: object, key: str, source: str | None) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping", source)
    return {str(k): str(v) for k, v in value.items()}


def _list_map(value: object, key: str, source: str | None) -> dict[str, tuple[str, ...]]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"'{key}' must be a mapping", source)
    result: dict[str, tuple[str, ...]] = {}
    for host, items in value.items():
        if isinstance(items, str):
            items = [items]
        if not isinstance(items, list):
            raise ConfigError(f"'{key}.{host}' must be a list of filetypes", source)
        result[str(host)] = tuple(str(i) for i in items)
    return result


def config_from_dict(data: Mapping[str, Any] | None, source: str | None = None) -> FormatterConfig:
    """Build a ``FormatterConfig`` from a plain mapping.

    Parameters
    ----------
    data:
        Parsed configuration document.  ``None`` yields an empty config.
    source:
        Origin used in error messages.

    Raises
    ------
    ConfigError
        If any section has the wrong shape.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError("top level must be a mapping", source)

    raw_filetypes = data.get("filetype") or {}
    if not isinstance(raw_filetypes, Mapping):
        raise ConfigError("'filetype' must be a mapping", source)
    filetypes = {
        str(ft): normalize_stages(stages, where=f"filetype.{ft}")
        for ft, stages in raw_filetypes.items()
    }

    injections = data.get("injections") or {}
    if not isinstance(injections, Mapping):
        raise ConfigError("'injections' must be a mapping", source)
    raw_indent = injections.get("auto_indent") or {}
    if not isinstance(raw_indent, Mapping):
        raise ConfigError("'injections.auto_indent' must be a mapping", source)

    extensions = dict(DEFAULT_EXTENSIONS)
    extensions.update(_str_map(data.get("extensions"), "extensions", source))
    parsers = dict(DEFAULT_PARSERS)
    parsers.update(_str_map(data.get("parsers"), "parsers", source))

    attached = data.get("attached") or ()
    if isinstance(attached, str):
        attached = (attached,)

    try:
        timeout = float(data.get("timeout", DEFAULT_TIMEOUT))
        concurrency = int(data.get("concurrency", DEFAULT_CONCURRENCY))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid number: {exc}", source) from None
    if timeout <= 0:
        raise ConfigError("'timeout' must be positive", source)
    if concurrency < 1:
        raise ConfigError("'concurrency' must be at least 1", source)

    return FormatterConfig(
        filetypes=filetypes,
        auto_indent={str(k): v if callable(v) else bool(v) for k, v in raw_indent.items()},
        disable_injected=_list_map(
            injections.get("disable_injected"), "injections.disable_injected", source
        ),
        languages=_str_map(data.get("languages"), "languages", source),
        parsers=parsers,
        extensions=extensions,
        attached=tuple(str(a) for a in attached),
        timeout=timeout,
        concurrency=concurrency,
        source=source,
    )


def load_config(path: str | Path) -> FormatterConfig:
    """Read and parse a YAML configuration file.

    Raises
    ------
    ConfigError
        If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration: {exc}", str(path)) from None
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}", str(path)) from None
    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data, source=str(path))


def find_config(start: str | Path) -> Path | None:
    """Search ``start`` and its parents for a configuration file."""
    current = Path(start).resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    return None
