import tempfile
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Optional at load time: the gateways report a missing key per request.
    together_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "together_api_key", "IPG_TOGETHER_API_KEY", "TOGETHER_API_KEY"
        ),
    )
    together_base_url: str = "https://api.together.xyz/v1"
    text_model: str = "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free"
    image_model: str = "black-forest-labs/FLUX.1-schnell"
    image_steps: int = 20
    image_width: int = 1024
    image_height: int = 1024
    request_timeout: float = 120.0

    scratch_dir: Path = Path(tempfile.gettempdir())
    project_dir: Path = Path("./data")
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="IPG_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("image_steps", "image_width", "image_height")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("image steps and dimensions must be at least 1")
        return v

    @field_validator("request_timeout")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v

    @property
    def analysis_dir(self) -> Path:
        return self.scratch_dir / "analysis"

    @property
    def images_dir(self) -> Path:
        return self.scratch_dir / "generated-images"

    @property
    def template_dir(self) -> Path:
        return self.project_dir / "template"

    @property
    def output_dir(self) -> Path:
        return self.project_dir / "output"

    @property
    def design_yaml_path(self) -> Path:
        return self.template_dir / "design.yaml"
