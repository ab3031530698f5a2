import os
from pydantic import ValidationError

from releaser.errors import ConfigurationError
from releaser.models import PipelineConfig
from releaser.utils.yaml_loader import load_yaml_file


class ConfigRepository:
    def __init__(self, file_path: str):
        self.file_path: str = file_path

    def load(self) -> PipelineConfig:
        if not os.path.isfile(self.file_path):
            raise ConfigurationError(f"Pipeline config {self.file_path} not found")
        data = load_yaml_file(self.file_path)
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid pipeline config: top level must be a mapping")
        try:
            return PipelineConfig(**data)
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid pipeline config: {e}") from e
