import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config/settings.yaml"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_MODEL = "gemini-1.5-flash"
BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class PathsConfig(BaseModel):
    log_dir: str = Field(default="logs")
    log_rotation: str = Field(default="10 MB")
    log_retention: str = Field(default="10 days")


class GenerationConfig(BaseModel):
    api_key: Optional[str] = Field(default_factory=lambda: os.getenv("GEMINI_API_KEY"))
    base_url: str = Field(default_factory=lambda: os.getenv("GEMINI_BASE_URL") or DEFAULT_BASE_URL)
    model_name: str = Field(default_factory=lambda: os.getenv("GEMINI_MODEL") or DEFAULT_MODEL)
    temperature: float = Field(default=0.7)
    max_tokens: int = Field(default=2048)


class ResolverConfig(BaseModel):
    timeout_seconds: float = Field(default=5.0)
    user_agent: str = Field(default=BROWSER_USER_AGENT)
    platform_api_url: str = Field(default="https://api.bilibili.com/x/web-interface/view")
    platform_referer: str = Field(default="https://www.bilibili.com")


class PackagingConfig(BaseModel):
    max_tags: int = Field(default=3)
    share_footer: str = Field(default="—— 来自老约翰「周末放映室」精选推荐")


class PipelineConfig(BaseModel):
    generate_share: bool = Field(default=True)


class AppConfig(BaseModel):
    paths: PathsConfig = Field(default_factory=PathsConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    packaging: PackagingConfig = Field(default_factory=PackagingConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)


class ConfigManager:
    """
    Manages loading and validation of application configuration.

    An explicit ``config_path`` must exist. Without one, ``config/settings.yaml``
    is used when present and the built-in defaults otherwise.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self._explicit = config_path is not None
        self.config: AppConfig = self._load_config()

    def _load_config(self) -> AppConfig:
        if not self.config_path.exists():
            if self._explicit:
                raise FileNotFoundError(f"Configuration file not found at {self.config_path}")
            return AppConfig()

        with open(self.config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}

        # Empty YAML values must not shadow the environment
        generation = raw_config.get("generation") or {}
        raw_config["generation"] = {k: v for k, v in generation.items() if v not in (None, "")}

        return AppConfig(**raw_config)

    @property
    def paths(self) -> PathsConfig:
        return self.config.paths

    @property
    def generation(self) -> GenerationConfig:
        return self.config.generation

    @property
    def resolver(self) -> ResolverConfig:
        return self.config.resolver

    @property
    def packaging(self) -> PackagingConfig:
        return self.config.packaging

    @property
    def pipeline(self) -> PipelineConfig:
        return self.config.pipeline

    @property
    def has_credential(self) -> bool:
        return bool(self.config.generation.api_key)
