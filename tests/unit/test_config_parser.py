import os
import pytest
from podbox.PARSERS.config_parser import ConfigParser
from podbox.errors import ConfigError

def test_defaults(tmp_path):
    config = ConfigParser(environ={}).parse(base_dir=str(tmp_path))
    assert config.container_name == "mcp-server"
    assert config.image_ref == "mcp-server:latest"
    assert config.ports == [6247, 8501, 8080, 5000]
    assert config.workspace == os.path.expanduser("~/mcp-container-workspace")

def test_yaml_with_interpolation(tmp_path):
    (tmp_path / "podbox.yml").write_text(
        "container_name: ${NAME:-sandbox}\n"
        "image_tag: ${TAG}\n"
        "log_tail_lines: 25\n"
    )
    config = ConfigParser(environ={"TAG": "dev"}).parse(base_dir=str(tmp_path))
    assert config.container_name == "sandbox"
    assert config.image_ref == "mcp-server:dev"
    assert config.log_tail_lines == 25

def test_env_file_and_environment_overrides(tmp_path):
    (tmp_path / "podbox.yml").write_text("container_name: from-yaml\n")
    (tmp_path / ".env").write_text("PODBOX_CONTAINER_NAME=from-dotenv\nPODBOX_PORTS=6247,8501\n")

    config = ConfigParser(environ={}).parse(base_dir=str(tmp_path))
    assert config.container_name == "from-dotenv"
    assert config.ports == [6247, 8501]

    config = ConfigParser(environ={"PODBOX_CONTAINER_NAME": "from-env"}).parse(base_dir=str(tmp_path))
    assert config.container_name == "from-env"

def test_explicit_workspace_wins(tmp_path):
    workspace = tmp_path / "ws"
    workspace.mkdir()
    (workspace / "podbox.yml").write_text("image_name: custom\n")
    config = ConfigParser(environ={"PODBOX_WORKSPACE": "/elsewhere"}).parse(workspace=str(workspace))
    assert config.workspace == str(workspace)
    assert config.image_name == "custom"

def test_invalid_yaml(tmp_path):
    (tmp_path / "podbox.yml").write_text("container_name: [unclosed\n")
    with pytest.raises(ConfigError):
        ConfigParser(environ={}).parse(base_dir=str(tmp_path))

def test_non_mapping_yaml(tmp_path):
    (tmp_path / "podbox.yml").write_text("- a\n- b\n")
    with pytest.raises(ConfigError):
        ConfigParser(environ={}).parse(base_dir=str(tmp_path))

def test_invalid_value(tmp_path):
    (tmp_path / "podbox.yml").write_text("startup_wait: soon\n")
    with pytest.raises(ConfigError):
        ConfigParser(environ={}).parse(base_dir=str(tmp_path))

def test_invalid_port_list(tmp_path):
    with pytest.raises(ConfigError):
        ConfigParser(environ={"PODBOX_PORTS": "80,http"}).parse(base_dir=str(tmp_path))

def test_unreadable_config_file(tmp_path):
    (tmp_path / "podbox.yml").mkdir()
    with pytest.raises(ConfigError) as exc_info:
        ConfigParser(environ={}).parse(base_dir=str(tmp_path))
    assert "Cannot read" in str(exc_info.value)
