"""Find and load the tabby project file.

Looks for tabby.yaml, tabby.yml, tabby.json or tabby.toml in the working
directory and its ancestors. Merges file config with CLI overrides; overrides
take precedence.
"""

from __future__ import annotations

import json
from pathlib import Path

from tabby._errors import ConfigError
from tabby.config import TabbyConfig

PROJECT_FILES = ("tabby.yaml", "tabby.yml", "tabby.json", "tabby.toml")

# Setting keys accepted in project files, with the camelCase spellings
# older project files use.
_KEYS = frozenset({
    "root_dir", "out_dir", "out_ext", "force", "data", "cache",
    "dependency", "target", "extension",
})
_ALIASES = {
    "rootDir": "root_dir",
    "outDir": "out_dir",
    "outExt": "out_ext",
}


def find_project(cwd: Path, project: str | None = None) -> Path:
    """Walk upward from *cwd* and return the first project file found.

    Args:
        cwd: Directory to start searching from.
        project: Explicit project file name (or path). When given, only that
            name is searched for.

    Raises:
        ConfigError: If no project file exists in *cwd* or any ancestor.

    """
    cwd = cwd.resolve()
    names = (project,) if project else PROJECT_FILES
    for directory in (cwd, *cwd.parents):
        for name in names:
            candidate = directory / name
            if candidate.is_file():
                return candidate
    msg = f"Cannot find {' / '.join(names)} from {cwd}"
    raise ConfigError(msg)


def load_config(
    cwd: Path,
    project: str | None = None,
    **overrides: object,
) -> TabbyConfig:
    """Load TabbyConfig from the project file found above *cwd*.

    Overrides whose value is None are ignored, so CLI flags that were not
    given never clobber project settings.
    """
    project_file = find_project(cwd, project)
    file_config = read_project_file(project_file)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return TabbyConfig(project_dir=project_file.parent, **merged)


def read_project_file(path: Path) -> dict[str, object]:
    """Parse a project file into a flat settings dict.

    Raises:
        ConfigError: If the file cannot be read or parsed.

    """
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            data = _parse_yaml(text)
        elif path.suffix == ".toml":
            data = _parse_toml(text)
        else:
            data = json.loads(text)
    except (OSError, ValueError) as exc:
        msg = f"Error loading {path}: {exc}"
        raise ConfigError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Project file {path} must contain a mapping"
        raise ConfigError(msg)
    return _flatten_tabby_section(data)


def _parse_yaml(text: str) -> object:
    import yaml

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(str(exc)) from exc


def _parse_toml(text: str) -> object:
    import tomllib

    return tomllib.loads(text)


def _flatten_tabby_section(data: dict[str, object]) -> dict[str, object]:
    """Extract tabby.* keys and known top-level keys into one settings dict."""
    result: dict[str, object] = {}
    for source in (data, data.get("tabby")):
        if not isinstance(source, dict):
            continue
        for k, v in source.items():
            key = _ALIASES.get(k, k)
            if key in _KEYS:
                result[key] = v
    return result
