"""
Writes the static container assets into the sandbox workspace.
"""
import os
from typing import List, NamedTuple
from jinja2 import Environment, PackageLoader, StrictUndefined
from ..MODELS.sandbox_config import SandboxConfig


class Asset(NamedTuple):
    filename: str
    template: str
    executable: bool = False


# Templates ending in .j2 are rendered with the sandbox configuration,
# .asset files are copied verbatim.
ASSETS: List[Asset] = [
    Asset("Dockerfile", "Dockerfile.j2"),
    Asset("requirements.txt", "requirements.txt.asset"),
    Asset("mcp_server.py", "mcp_server.py.asset", executable=True),
    Asset("terminal_client.py", "terminal_client.py.asset", executable=True),
    Asset("app.py", "app.py.asset", executable=True),
    Asset("streamlit_client.py", "streamlit_client.py.asset"),
    Asset("start_container_services.sh", "start_container_services.sh.j2", executable=True),
    Asset("build_container.sh", "build_container.sh.j2", executable=True),
    Asset("start_container.sh", "start_container.sh.j2", executable=True),
    Asset("stop_container.sh", "stop_container.sh.j2", executable=True),
    Asset("container_status.sh", "container_status.sh.j2", executable=True),
    Asset("login.sh", "login.sh.j2", executable=True),
    Asset("manage.sh", "manage.sh.j2", executable=True),
    Asset("README.md", "README.md.j2"),
]


class AssetMaterializer:
    """
    Renders the asset table into a target directory. Output depends only on
    the configuration, so repeated runs rewrite identical bytes.
    """
    def __init__(self, config: SandboxConfig, assets: List[Asset] = None):
        """
        :param config: Values substituted into the templates.
        :param assets: Asset table, defaults to ``ASSETS``.
        """
        self.config = config
        self.assets = assets if assets is not None else ASSETS
        self.env = Environment(
            loader=PackageLoader("podbox", "TEMPLATES"),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
            autoescape=False,
        )

    def context(self) -> dict:
        ports = self.config.web_interfaces
        return {
            "container_name": self.config.container_name,
            "image_ref": self.config.image_ref,
            "ports": self.config.ports,
            "urls": self.config.web_urls(),
            "web_port": ports.get("Web Client", 8501),
            "api_port": ports.get("API Server", 5000),
        }

    def render(self, asset: Asset) -> str:
        if asset.template.endswith(".j2"):
            return self.env.get_template(asset.template).render(**self.context())
        source, _, _ = self.env.loader.get_source(self.env, asset.template)
        return source

    def materialize(self, target_dir: str = None) -> List[str]:
        """
        Writes every asset and sets its permission bits.

        :param target_dir: Destination, defaults to the configured workspace.
        :return: Paths of the written files, in table order.
        """
        target_dir = target_dir or self.config.workspace
        os.makedirs(target_dir, exist_ok=True)

        written = []
        for asset in self.assets:
            path = os.path.join(target_dir, asset.filename)
            with open(path, 'w') as f:
                f.write(self.render(asset))
            os.chmod(path, 0o755 if asset.executable else 0o644)
            written.append(path)
        return written
