from typing import Any
from ruamel.yaml import YAML


def get_yaml_instance() -> YAML:
    yaml = YAML(typ="safe", pure=True)
    yaml.default_flow_style = False
    return yaml


def load_yaml_file(file_path: str) -> Any:
    with open(file_path, "r") as f:
        return get_yaml_instance().load(f)
