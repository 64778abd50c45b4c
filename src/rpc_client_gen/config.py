"""Generator settings and their validation."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from rpc_client_gen.errors import ConfigurationError

DEFAULT_CONTROLLER_PATTERN = "src/modules/*/*_controller.py"
DEFAULT_OUTPUT_DIR = "generated/rpc"
DEFAULT_OUTPUT_FILE = "client.ts"


class GeneratorSettings(BaseModel):
    """Values the pipeline consumes; none of them carry behavior."""

    controller_pattern: str = DEFAULT_CONTROLLER_PATTERN
    project_root: Path = Path(".")
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    output_file: str = DEFAULT_OUTPUT_FILE
    generate_on_init: bool = True
    route_table: Path | None = None

    @property
    def output_path(self) -> Path:
        output_dir = self.output_dir
        if not output_dir.is_absolute():
            output_dir = self.project_root / output_dir
        return output_dir / self.output_file

    def check(self) -> "GeneratorSettings":
        """Check every setting and raise one ConfigurationError listing all problems."""
        errors = []
        if not self.controller_pattern.strip():
            errors.append("Controller pattern cannot be empty")
        if not str(self.project_root).strip():
            errors.append("Project root cannot be empty")
        elif not self.project_root.is_dir():
            errors.append(f"Project root not found at: {self.project_root}")
        if not str(self.output_dir).strip():
            errors.append("Output directory cannot be empty")
        if not self.output_file.strip():
            errors.append("Output file name cannot be empty")
        if self.route_table is not None and not self.route_table.is_file():
            errors.append(f"Route table file not found at: {self.route_table}")

        if errors:
            raise ConfigurationError(errors)
        return self


def load_settings(path: Path | None = None, **overrides) -> GeneratorSettings:
    """Load settings from a YAML file, apply non-None overrides, and validate them."""
    data: dict = {}
    if path is not None:
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError([f"Cannot read config file {path}: {e}"]) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError([f"Config file {path} must contain a mapping"])
        data.update(loaded or {})

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        settings = GeneratorSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            [f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()]
        ) from e
    return settings.check()
