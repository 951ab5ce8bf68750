"""
Service Definition Generator.

This module renders plugin configurations into service-manager files.

Generated layout beneath the output root:
- systemd/{id}.service            systemd unit
- supervisor/{id}.conf            supervisor program block
- install-generated-services.sh   installer for both formats
- install-generated-services.ps1  note for Windows operators

Nothing here installs or starts services; callers get the file paths back
and decide what to do with them.
"""

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from plugvisor.logging_config import get_logger
from plugvisor.plugin.models import PluginConfig, PluginContext, RestartPolicy
from plugvisor.plugin.registry import PluginRegistry
from plugvisor.template import EnvLookup, expand, expand_dict, expand_list

logger = get_logger("generator")

DEFAULT_ID = "plugin"
INSTALL_SCRIPT_NAME = "install-generated-services.sh"
WINDOWS_HELPER_NAME = "install-generated-services.ps1"

_SYSTEMD_RESTART = {
    RestartPolicy.ALWAYS: "always",
    RestartPolicy.ON_FAILURE: "on-failure",
    RestartPolicy.NEVER: "no",
}


class GenerationError(Exception):
    """Raised when a service file cannot be written."""

    pass


@dataclass
class GenerationResult:
    """
    Paths produced by one generate_all() call.

    Attributes:
        systemd_units: Unit files, one per config
        supervisor_configs: Supervisor confs, one per config
        install_script: Shell installer
        windows_helper: PowerShell note for Windows hosts
    """

    systemd_units: list[Path] = field(default_factory=list)
    supervisor_configs: list[Path] = field(default_factory=list)
    install_script: Path | None = None
    windows_helper: Path | None = None

    @property
    def files(self) -> list[Path]:
        """Every generated path in generation order."""
        paths: list[Path] = []
        for unit, conf in zip(self.systemd_units, self.supervisor_configs, strict=True):
            paths.extend((unit, conf))
        if self.install_script is not None:
            paths.append(self.install_script)
        if self.windows_helper is not None:
            paths.append(self.windows_helper)
        return paths


def effective_id(config: PluginConfig) -> str:
    """Id used for file names and descriptions; blank ids become "plugin"."""
    if config.id and config.id.strip():
        return config.id
    return DEFAULT_ID


def _file_stem(config: PluginConfig) -> str:
    """
    Effective id checked for use as a file name.

    Raises:
        GenerationError: If the id would place a file outside its directory
    """
    service_id = effective_id(config)
    if (
        "/" in service_id
        or "\\" in service_id
        or "\0" in service_id
        or service_id in (".", "..")
    ):
        raise GenerationError(f"Plugin id {service_id!r} is not a valid service name")
    return service_id


def _escape_env_value(value: str) -> str:
    """Escape a value for a double-quoted environment entry in either format."""
    # systemd expands %-specifiers and supervisor %(name)s; both honor \" and \\
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("%", "%%")


class ServiceDefinitionGenerator:
    """
    Writes systemd units, supervisor confs and an install script.

    Example:
        generator = ServiceDefinitionGenerator(Path("generated-services"))
        result = generator.generate_all(configs, "/opt/appium")
        for path in result.files:
            print(path)
    """

    def __init__(
        self,
        output_root: Path | str,
        variables: Mapping[str, Any] | None = None,
        env_lookup: EnvLookup = os.environ.get,
    ):
        """
        Initialize ServiceDefinitionGenerator.

        Args:
            output_root: Directory generated files are written under
            variables: Extra template variables for every config
            env_lookup: Environment lookup for ${NAME} tokens
        """
        self.output_root = Path(output_root)
        self._variables = dict(variables or {})
        self._env_lookup = env_lookup

    @property
    def systemd_dir(self) -> Path:
        return self.output_root / "systemd"

    @property
    def supervisor_dir(self) -> Path:
        return self.output_root / "supervisor"

    def _context(self, config: PluginConfig, install_folder: str) -> PluginContext:
        ctx = PluginContext(install_folder=install_folder, config=config)
        ctx.variables.update(self._variables)
        ctx.variables["installFolder"] = install_folder
        return ctx

    def _command(self, config: PluginConfig, ctx: PluginContext) -> str:
        exe = expand(config.executable, ctx, self._env_lookup) or config.executable or ""
        args = expand_list(config.arguments, ctx, self._env_lookup) or []
        joined = " ".join(args)
        return f"{exe} {joined}" if joined.strip() else exe

    def _working_directory(self, config: PluginConfig, ctx: PluginContext) -> str | None:
        if config.working_directory is None or not config.working_directory.strip():
            return None
        return expand(config.working_directory, ctx, self._env_lookup)

    def _environment(self, config: PluginConfig, ctx: PluginContext) -> dict[str, str]:
        return expand_dict(config.environment_variables, ctx, self._env_lookup) or {}

    def _write(self, path: Path, content: str, mode: int | None = None) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8", newline="\n")
            if mode is not None:
                path.chmod(mode)
        except OSError as e:
            raise GenerationError(f"Failed to write {path}: {e}") from e

        logger.debug("Wrote {}", path)
        return path

    def render_systemd_unit(self, config: PluginConfig, install_folder: str) -> str:
        """Render the unit file text for a config."""
        service_id = effective_id(config)
        ctx = self._context(config, install_folder)
        restart_sec = max(1, config.health_check_interval_seconds or 5)

        lines = [
            "[Unit]",
            f"Description=Appium Plugin - {service_id}",
            "After=network.target",
            "",
            "[Service]",
            "Type=simple",
            f"ExecStart={self._command(config, ctx)}",
        ]

        working_directory = self._working_directory(config, ctx)
        if working_directory:
            lines.append(f"WorkingDirectory={working_directory}")

        for key, value in self._environment(config, ctx).items():
            lines.append(f'Environment="{key}={_escape_env_value(value)}"')

        lines.extend(
            [
                f"Restart={_SYSTEMD_RESTART[config.restart_policy]}",
                f"RestartSec={restart_sec}",
                "",
                "[Install]",
                "WantedBy=multi-user.target",
            ]
        )
        return "\n".join(lines) + "\n"

    def render_supervisor_conf(self, config: PluginConfig, install_folder: str) -> str:
        """Render the supervisor program block for a config."""
        service_id = effective_id(config)
        ctx = self._context(config, install_folder)
        autorestart = "false" if config.restart_policy == RestartPolicy.NEVER else "true"

        lines = [
            f"[program:{service_id}]",
            f"command={self._command(config, ctx)}",
            "autostart=true",
            f"autorestart={autorestart}",
        ]

        working_directory = self._working_directory(config, ctx)
        if working_directory:
            lines.append(f"directory={working_directory}")

        environment = self._environment(config, ctx)
        if environment:
            pairs = ",".join(
                f'{key}="{_escape_env_value(value)}"' for key, value in environment.items()
            )
            lines.append(f"environment={pairs}")

        lines.append(f"stdout_logfile=/var/log/{service_id}.log")
        lines.append(f"stderr_logfile=/var/log/{service_id}.err.log")
        return "\n".join(lines) + "\n"

    def generate_systemd_unit(self, config: PluginConfig, install_folder: str) -> Path:
        """
        Write {output_root}/systemd/{id}.service.

        Returns:
            Path of the written unit

        Raises:
            GenerationError: If the id is not a valid file name or the file cannot be written
        """
        path = self.systemd_dir / f"{_file_stem(config)}.service"
        return self._write(path, self.render_systemd_unit(config, install_folder))

    def generate_supervisor_conf(self, config: PluginConfig, install_folder: str) -> Path:
        """
        Write {output_root}/supervisor/{id}.conf.

        Returns:
            Path of the written conf

        Raises:
            GenerationError: If the id is not a valid file name or the file cannot be written
        """
        path = self.supervisor_dir / f"{_file_stem(config)}.conf"
        return self._write(path, self.render_supervisor_conf(config, install_folder))

    def render_install_script(self, service_ids: list[str]) -> str:
        """Render the shell installer for the given effective ids."""
        units = [f"{service_id}.service" for service_id in service_ids]
        confs = [f"{service_id}.conf" for service_id in service_ids]

        lines = [
            "#!/bin/bash",
            "set -euo pipefail",
            'GEN_DIR="$(cd "$(dirname "$0")" && pwd)"',
            'echo "Installing generated services from $GEN_DIR"',
        ]

        if not units:
            lines.append('echo "No plugin services to install"')
            lines.append("exit 0")
            return "\n".join(lines) + "\n"

        lines.append(
            f'echo "Installing {len(units)} plugin service(s): {", ".join(units)}"'
        )
        lines.append("")
        lines.append("if command -v systemctl >/dev/null 2>&1; then")
        lines.append('  echo "Installing systemd unit files..."')
        for unit in units:
            lines.append(f'  sudo cp "$GEN_DIR/systemd/{unit}" /etc/systemd/system/')
        lines.append("  sudo systemctl daemon-reload || true")
        for unit in units:
            lines.append(f'  echo "Enabling {unit}"')
            lines.append(f'  sudo systemctl enable "{unit}" || true')
            lines.append(f'  sudo systemctl start "{unit}" || true')
        lines.append("fi")
        lines.append("")
        lines.append("if command -v supervisorctl >/dev/null 2>&1; then")
        lines.append('  echo "Installing supervisor configs..."')
        for conf in confs:
            lines.append(f'  sudo cp "$GEN_DIR/supervisor/{conf}" /etc/supervisor/conf.d/')
        lines.append("  sudo supervisorctl update || true")
        lines.append("fi")
        lines.append("")
        lines.append('echo "Install complete"')
        return "\n".join(lines) + "\n"

    def generate_all(
        self, configs: Iterable[PluginConfig], install_folder: str
    ) -> GenerationResult:
        """
        Generate both service formats for every config plus the installers.

        Every config passed in is generated; filter on `enabled` before
        calling if needed. A config whose effective id was already generated
        in this call is skipped with a warning.

        Args:
            configs: Plugin configurations
            install_folder: Value for installFolder / INSTALL_FOLDER tokens

        Returns:
            GenerationResult listing every written path

        Raises:
            GenerationError: If any file or directory cannot be written
        """
        try:
            self.systemd_dir.mkdir(parents=True, exist_ok=True)
            self.supervisor_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GenerationError(
                f"Failed to create output directories under {self.output_root}: {e}"
            ) from e

        result = GenerationResult()
        service_ids: list[str] = []

        for config in configs:
            service_id = effective_id(config)
            if service_id in service_ids:
                logger.warning(
                    "Skipping plugin '{}' (name={!r}): service id already generated",
                    service_id,
                    config.name,
                )
                continue

            result.systemd_units.append(self.generate_systemd_unit(config, install_folder))
            result.supervisor_configs.append(
                self.generate_supervisor_conf(config, install_folder)
            )
            service_ids.append(service_id)

        result.install_script = self._write(
            self.output_root / INSTALL_SCRIPT_NAME,
            self.render_install_script(service_ids),
            mode=0o755,
        )
        result.windows_helper = self._write(
            self.output_root / WINDOWS_HELPER_NAME,
            "Write-Host 'Service templates were generated for Linux (systemd/supervisor).'\n"
            "Write-Host 'On Windows, create equivalent services from the generated "
            "definitions (NSSM or sc.exe).'\n",
        )

        logger.info(
            "Generated {} plugin service definition(s) under {}",
            len(service_ids),
            self.output_root,
        )
        return result

    def generate_for_registry(
        self,
        registry: PluginRegistry,
        install_folder: str,
        include_disabled: bool = False,
    ) -> GenerationResult:
        """Generate definitions registered in a PluginRegistry, skipping disabled ones by default."""
        configs = []
        for definition_id, config in registry.get_definitions():
            if not (include_disabled or config.enabled):
                continue
            # Name files after the registry key when the config carries no id
            if not config.id or not config.id.strip():
                config = replace(config, id=definition_id)
            configs.append(config)
        return self.generate_all(configs, install_folder)
