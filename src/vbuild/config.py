"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _default_ledger_path() -> Path:
    workspace = Path(os.getenv("VBUILD_WORKSPACE", "."))
    return Path(os.getenv("VBUILD_LEDGER_PATH", str(workspace / ".vbuild" / "submissions.json")))


class Config(BaseModel):
    """Application configuration."""

    # Storage
    site_url: str = Field(
        default_factory=lambda: os.getenv("VBUILD_SITE_URL", ""),
        description="Base URL used to resolve relative storage references"
    )
    database_url: str = Field(
        default_factory=lambda: os.getenv("VBUILD_DATABASE_URL", "sqlite:///vbuild.db"),
        description="SQLAlchemy URL of the scene ordering store"
    )

    # Render service
    render_endpoint: str = Field(
        default_factory=lambda: os.getenv("VBUILD_RENDER_ENDPOINT", ""),
        description="Render submission endpoint"
    )
    render_api_key: str = Field(
        default_factory=lambda: os.getenv("VBUILD_RENDER_API_KEY", ""),
        description="Render service API key"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("VBUILD_WORKSPACE", ".")),
        description="Workspace directory"
    )
    ledger_path: Path = Field(
        default_factory=_default_ledger_path,
        description="Ledger of the last successful submission hash per project"
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_render_required(self) -> None:
        """Validate that render submission settings are present.

        Raises:
            ValueError: If any required render configuration is missing.
        """
        missing: list[str] = []

        if not self.render_endpoint:
            missing.append("VBUILD_RENDER_ENDPOINT")
        if not self.render_api_key:
            missing.append("VBUILD_RENDER_API_KEY")

        if missing:
            raise ValueError(
                f"Missing required render configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

        if not self.render_endpoint.startswith(("http://", "https://")):
            raise ValueError(
                f"VBUILD_RENDER_ENDPOINT must be an http(s) URL. "
                f"Got: {self.render_endpoint}"
            )


# Global config instance
config = Config()
