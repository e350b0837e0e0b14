import os
import stat
import podbox
from podbox.BUILDERS.asset_materializer import AssetMaterializer, ASSETS
from podbox.MODELS.sandbox_config import SandboxConfig

def _mode(path):
    return stat.S_IMODE(os.stat(path).st_mode)

def test_materialize_writes_every_asset(config):
    written = AssetMaterializer(config).materialize()
    assert [os.path.basename(p) for p in written] == [a.filename for a in ASSETS]
    for asset, path in zip(ASSETS, written):
        assert os.path.getsize(path) > 0
        assert _mode(path) == (0o755 if asset.executable else 0o644)

def test_dockerfile_contents(config):
    AssetMaterializer(config).materialize()
    with open(os.path.join(config.workspace, "Dockerfile")) as f:
        dockerfile = f.read()
    assert dockerfile.startswith("FROM python:3.11-slim")
    assert "EXPOSE 6247 8501 8080 5000" in dockerfile
    assert "apt-get" in dockerfile

def test_wrappers_delegate_to_cli(config):
    AssetMaterializer(config).materialize()
    with open(os.path.join(config.workspace, "manage.sh")) as f:
        assert "podbox --workspace . menu" in f.read()

def test_python_assets_are_verbatim(config):
    AssetMaterializer(config).materialize()
    template_dir = os.path.join(os.path.dirname(podbox.__file__), "TEMPLATES")
    with open(os.path.join(template_dir, "mcp_server.py.asset")) as f:
        source = f.read()
    with open(os.path.join(config.workspace, "mcp_server.py")) as f:
        assert f.read() == source
    with open(os.path.join(config.workspace, "requirements.txt")) as f:
        assert "streamlit" in f.read()

def test_rendering_follows_configuration(tmp_path):
    config = SandboxConfig(workspace=str(tmp_path), container_name="other", ports=[9000])
    AssetMaterializer(config).materialize()
    with open(os.path.join(str(tmp_path), "Dockerfile")) as f:
        assert "EXPOSE 9000" in f.read()
    with open(os.path.join(str(tmp_path), "README.md")) as f:
        assert "other" in f.read()

def test_materialize_is_idempotent(config):
    materializer = AssetMaterializer(config)
    first = {}
    for path in materializer.materialize():
        with open(path, 'rb') as f:
            first[path] = f.read()
    for path in materializer.materialize():
        with open(path, 'rb') as f:
            assert f.read() == first[path]
