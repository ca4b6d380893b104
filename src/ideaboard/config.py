"""Ideaboard configuration management."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CSV_FILENAME = "prioritized_ideas.csv"


@dataclass
class Config:
    """Ideaboard configuration."""

    workspace_path: Path = field(default_factory=lambda: Path.home() / ".ideaboard")
    backend_url: str = ""
    webhook_url: str = ""
    log_level: str = "INFO"
    page_size: int = 10
    request_timeout: float = 30.0

    # Simulated backend latency in demo mode (seconds)
    demo_latency_min: float = 0.3
    demo_latency_max: float = 0.7

    automation_source: str = "IdeaboardApp"
    csv_date_format: str = "%d/%m/%Y"

    @classmethod
    def load(cls, workspace_path: Path | None = None) -> Config:
        """Load config from env vars, then YAML file, over defaults."""
        config = cls()

        if workspace_path:
            config.workspace_path = workspace_path

        env_path = os.environ.get("IDEABOARD_HOME")
        if env_path:
            config.workspace_path = Path(env_path)

        # Load YAML config if exists
        config_file = config.workspace_path / "config.yaml"
        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            for key, value in data.items():
                if value is None:
                    continue
                if hasattr(config, key) and key != "workspace_path":
                    expected_type = type(getattr(config, key))
                    setattr(config, key, expected_type(value))

        # Environment wins over the file for endpoints and verbosity
        env_backend = os.environ.get("IDEABOARD_BACKEND_URL")
        if env_backend is not None:
            config.backend_url = env_backend

        env_webhook = os.environ.get("IDEABOARD_WEBHOOK_URL")
        if env_webhook is not None:
            config.webhook_url = env_webhook

        env_log = os.environ.get("IDEABOARD_LOG_LEVEL")
        if env_log:
            config.log_level = env_log

        return config

    @property
    def demo_mode(self) -> bool:
        return not self.backend_url.strip()

    @property
    def config_file(self) -> Path:
        return self.workspace_path / "config.yaml"

    @property
    def export_path(self) -> Path:
        return self.workspace_path / CSV_FILENAME

    def save(self) -> None:
        """Save current config to YAML."""
        self.workspace_path.mkdir(parents=True, exist_ok=True)
        data = {
            "backend_url": self.backend_url,
            "webhook_url": self.webhook_url,
            "log_level": self.log_level,
            "page_size": self.page_size,
            "request_timeout": self.request_timeout,
            "demo_latency_min": self.demo_latency_min,
            "demo_latency_max": self.demo_latency_max,
            "automation_source": self.automation_source,
            "csv_date_format": self.csv_date_format,
        }
        with open(self.config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False)
