import pytest
import os
import shutil

from releaser.errors import ConfigurationError
from releaser.repositories import ConfigRepository

ASSETS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "assets")


@pytest.fixture
def config_file(tmp_path):
    source_file = os.path.join(ASSETS_DIR, "pipeline.yaml")
    dest_file = tmp_path / "pipeline.yaml"
    shutil.copy(source_file, dest_file)
    return dest_file


def test_config_repository_load(config_file):
    config = ConfigRepository(str(config_file)).load()

    assert config.repository == "acme/web-app"
    assert config.branch == "main"
    assert config.versioning.default_bump == "patch"
    assert config.versioning.tag_prefix == "v"
    assert config.build.commands == [["npm", "install"], ["npm", "run", "build", "--if-present"]]
    assert config.artifacts.bucket == "my-eb-bucket-darey"
    assert config.artifacts.key_template == "deploy-{sha}.zip"
    assert config.deployment.application_name == "my-node-app"
    assert config.deployment.environment_name == "my-node-env"
    assert config.deployment.lock_dir is None
    assert config.retry.max_attempts == 3
    assert config.handoff.mode == "inline"


def test_minimal_config_uses_defaults(tmp_path):
    minimal = tmp_path / "pipeline.yaml"
    minimal.write_text(
        "artifacts:\n  bucket: b\n"
        "deployment:\n  application_name: app\n  environment_name: env\n"
    )
    config = ConfigRepository(str(minimal)).load()
    assert config.versioning.default_bump == "patch"
    assert config.tagging.annotated is True
    assert config.release.title == "Release {tag}"
    assert config.release.draft is False
    assert config.build.exclude == [".git*"]
    assert config.handoff.event_type == "release-published"


def test_missing_config_file():
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigRepository("notexistingfile").load()


def test_invalid_bump_policy(tmp_path):
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text(
        "versioning:\n  default_bump: huge\n"
        "artifacts:\n  bucket: b\n"
        "deployment:\n  application_name: app\n  environment_name: env\n"
    )
    with pytest.raises(ConfigurationError, match="Invalid pipeline config"):
        ConfigRepository(str(bad_file)).load()


def test_missing_required_section(tmp_path):
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("branch: main\n")
    with pytest.raises(ConfigurationError, match="Invalid pipeline config"):
        ConfigRepository(str(bad_file)).load()


def test_non_mapping_config(tmp_path):
    bad_file = tmp_path / "bad.yaml"
    bad_file.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError, match="top level must be a mapping"):
        ConfigRepository(str(bad_file)).load()
