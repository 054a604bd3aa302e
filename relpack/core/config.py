"""Release configuration loading.

Configuration lives in `rel/config.toml` under the project root:

    [release]
    name = "myapp"
    build_environment = "prod"
    build_command = ["mix", "distillery.release", "--env={{ env }}"]

    [release.overlay_vars]
    log_level = "info"

    [[release.overlays]]
    kind = "template"
    source = "rel/vm.args"
    destination = "releases/{{ release_version }}/vm.args"

    [environments.prod]
    output_dir = "_build/prod/rel/myapp"

The release environment (--env) selects an `[environments.<env>]` table and
is handed to the build command through `{{ env }}`. The build environment
(MIX_ENV) decides where the build tool writes the release.

An environment table may override any `[release]` key. Its `overlay_vars`
are merged over the release ones and its `overlays` are appended after them.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from pathlib import Path

from .release import CopyOverlay, OverlaySpec, TemplateOverlay
from .release_errors import ConfigInvalid, ConfigNotFound
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_list, get_str, get_str_list, get_table

__all__ = [
    "ArchiverKind",
    "ConfigLoadError",
    "ReleaseConfig",
    "Verbosity",
    "CONFIG_RELATIVE_PATH",
    "BUILD_ENVIRONMENT_VAR",
    "DEFAULT_BUILD_ENVIRONMENT",
    "DEFAULT_ENVIRONMENT",
    "ENVIRONMENT_VAR",
    "config_path_for",
    "load_release_config",
    "resolve_build_environment",
    "resolve_environment",
]

CONFIG_RELATIVE_PATH = Path("rel") / "config.toml"
ENVIRONMENT_VAR = "RELPACK_ENV"
DEFAULT_ENVIRONMENT = "dev"
BUILD_ENVIRONMENT_VAR = "MIX_ENV"
DEFAULT_BUILD_ENVIRONMENT = "dev"

ConfigLoadError = ConfigNotFound | ConfigInvalid


class Verbosity(IntEnum):
    """How much the console prints. Errors are always shown."""

    SILENT = 0
    QUIET = 1
    NORMAL = 2
    VERBOSE = 3


class ArchiverKind(StrEnum):
    zip = "zip"
    builtin = "builtin"


def _empty_vars() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Settings for one release invocation, with the environment applied."""

    project_root: Path
    config_path: Path
    environment: str
    name: str
    build_environment: str = DEFAULT_BUILD_ENVIRONMENT
    version: str | None = None
    output_dir: Path | None = None
    erts_version: str | None = None
    build_command: tuple[str, ...] = ()
    overlays: tuple[OverlaySpec, ...] = ()
    overlay_vars: Mapping[str, str] = field(default_factory=_empty_vars)
    verbosity: Verbosity = Verbosity.NORMAL
    archiver: ArchiverKind = ArchiverKind.zip

    @property
    def resolved_output_dir(self) -> Path:
        """Absolute output directory.

        Defaults to `_build/<build_environment>/rel/<name>`, where the build
        tool places releases for that build environment.
        """
        out = self.output_dir or Path("_build") / self.build_environment / "rel" / self.name
        if not out.is_absolute():
            out = self.project_root / out
        return out.resolve()


def config_path_for(project_root: Path) -> Path:
    return project_root / CONFIG_RELATIVE_PATH


def resolve_environment(explicit: str | None, release: Mapping[str, object]) -> str:
    """Pick the release environment.

    Order: explicit value (--env), $RELPACK_ENV, release.default_environment,
    then "dev".
    """
    if explicit and explicit.strip():
        return explicit.strip()
    from_env = os.environ.get(ENVIRONMENT_VAR, "").strip()
    if from_env:
        return from_env
    return get_str(release, "default_environment") or DEFAULT_ENVIRONMENT


def resolve_build_environment(configured: str | None) -> str:
    """Pick the build environment (MIX_ENV of the build command).

    Order: build_environment from the config, $MIX_ENV, then "dev". This is
    independent of the release environment selected with --env.
    """
    if configured:
        return configured
    return os.environ.get(BUILD_ENVIRONMENT_VAR, "").strip() or DEFAULT_BUILD_ENVIRONMENT


def _parse_toml(path: Path) -> Result[StrDict, ConfigLoadError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigNotFound(path=path))
    except PermissionError:
        return Err(ConfigInvalid(f"Permission denied reading: {path}", path=path))
    except IsADirectoryError:
        return Err(ConfigInvalid(f"Not a file: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigInvalid(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigInvalid(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigInvalid("Config root must be a TOML table", path=path))
    return Ok(data)


def _parse_command(table: Mapping[str, object], where: str) -> tuple[str, ...]:
    value = table.get("build_command")
    if isinstance(value, str):
        return tuple(shlex.split(value))
    items = get_str_list(table, "build_command")
    if items is None:
        raise ValueError(f"{where}.build_command must be a string or a list of strings")
    return tuple(items)


def _parse_vars(table: Mapping[str, object], where: str) -> dict[str, str]:
    vars_table = table.get("overlay_vars")
    if vars_table is None:
        return {}
    parsed = as_str_dict(vars_table)
    if parsed is None:
        raise ValueError(f"{where}.overlay_vars must be a table")

    out: dict[str, str] = {}
    for key, value in parsed.items():
        if isinstance(value, bool):
            out[key] = str(value).lower()
        elif isinstance(value, (str, int, float)):
            out[key] = str(value)
        else:
            raise ValueError(f"{where}.overlay_vars.{key} must be a scalar value")
    return out


def _parse_overlays(
    table: Mapping[str, object], where: str, project_root: Path
) -> list[OverlaySpec]:
    if "overlays" not in table:
        return []
    items = get_list(table, "overlays")
    if items is None:
        raise ValueError(f"{where}.overlays must be an array of tables")

    overlays: list[OverlaySpec] = []
    for index, item in enumerate(items):
        entry = as_str_dict(item)
        if entry is None:
            raise ValueError(f"{where}.overlays[{index}] must be a table")
        kind = get_str(entry, "kind")
        source = get_str(entry, "source")
        destination = get_str(entry, "destination")
        if source is None or destination is None:
            raise ValueError(f"{where}.overlays[{index}] needs 'source' and 'destination'")

        src = Path(source).expanduser()
        if not src.is_absolute():
            src = project_root / src

        match kind:
            case "copy":
                overlays.append(CopyOverlay(source=src, destination=destination))
            case "template":
                overlays.append(TemplateOverlay(source=src, destination=destination))
            case _:
                raise ValueError(
                    f"{where}.overlays[{index}].kind must be 'copy' or 'template' (got {kind!r})"
                )
    return overlays


def _pick_str(
    key: str, env_table: Mapping[str, object], release: Mapping[str, object]
) -> str | None:
    return get_str(env_table, key) or get_str(release, key)


def _build_config(
    data: Mapping[str, object],
    *,
    project_root: Path,
    config_path: Path,
    environment: str | None,
    verbosity: Verbosity,
    archiver: ArchiverKind | None,
    skip_build: bool,
) -> ReleaseConfig:
    release = get_table(data, "release")
    if release is None:
        raise ValueError("missing [release] table")

    env = resolve_environment(environment, release)
    env_table: StrDict = {}
    if "environments" in data:
        environments = get_table(data, "environments")
        if environments is None:
            raise ValueError("[environments] must be a table")
        if env not in environments:
            available = ", ".join(sorted(environments)) or "none"
            raise ValueError(f"unknown environment '{env}' (available: {available})")
        selected = get_table(environments, env)
        if selected is None:
            raise ValueError(f"[environments.{env}] must be a table")
        env_table = selected

    name = _pick_str("name", env_table, release)
    if name is None:
        raise ValueError("release.name is required")

    build_command: tuple[str, ...] = ()
    if not skip_build:
        if "build_command" in env_table:
            build_command = _parse_command(env_table, f"environments.{env}")
        elif "build_command" in release:
            build_command = _parse_command(release, "release")

    overlay_vars = _parse_vars(release, "release")
    overlay_vars.update(_parse_vars(env_table, f"environments.{env}"))

    overlays = _parse_overlays(release, "release", project_root)
    overlays += _parse_overlays(env_table, f"environments.{env}", project_root)

    archiver_kind = archiver
    if archiver_kind is None:
        raw = _pick_str("archiver", env_table, release)
        try:
            archiver_kind = ArchiverKind(raw) if raw else ArchiverKind.zip
        except ValueError:
            raise ValueError(f"archiver must be 'zip' or 'builtin' (got {raw!r})") from None

    output_dir = _pick_str("output_dir", env_table, release)

    return ReleaseConfig(
        project_root=project_root,
        config_path=config_path,
        environment=env,
        name=name,
        build_environment=resolve_build_environment(
            _pick_str("build_environment", env_table, release)
        ),
        version=_pick_str("version", env_table, release),
        output_dir=Path(output_dir).expanduser() if output_dir else None,
        erts_version=_pick_str("erts_version", env_table, release),
        build_command=build_command,
        overlays=tuple(overlays),
        overlay_vars=overlay_vars,
        verbosity=verbosity,
        archiver=archiver_kind,
    )


def load_release_config(
    project_root: Path,
    *,
    config_path: Path | None = None,
    environment: str | None = None,
    verbosity: Verbosity = Verbosity.NORMAL,
    archiver: ArchiverKind | None = None,
    skip_build: bool = False,
) -> Result[ReleaseConfig, ConfigLoadError]:
    """Load `rel/config.toml` and apply the selected environment.

    Args:
        project_root: Directory relative paths are resolved against.
        config_path: Explicit config file (defaults to rel/config.toml).
        environment: Environment override (--env).
        verbosity: Console verbosity for this invocation.
        archiver: Archiver override (--archiver).
        skip_build: Ignore any configured build command.

    Returns:
        Ok(ReleaseConfig), Err(ConfigNotFound) or Err(ConfigInvalid).
    """
    root = project_root.resolve()
    path = config_path or config_path_for(root)

    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    try:
        config = _build_config(
            parsed.value,
            project_root=root,
            config_path=path,
            environment=environment,
            verbosity=verbosity,
            archiver=archiver,
            skip_build=skip_build,
        )
    except ValueError as e:
        return Err(ConfigInvalid(str(e), path=path))
    return Ok(config)
