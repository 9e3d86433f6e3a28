"""Configuration management for precompress."""

import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from ruamel.yaml import YAML

DEFAULT_FILENAME = "[path][base].gz"
DEFAULT_CONFIG_PATH = Path.home() / ".config/precompress/config.yaml"

PathCondition = Union[str, re.Pattern]
PathRule = Union[PathCondition, List[PathCondition]]
CodecSpec = Union[str, Callable[..., Any]]
FilenameSpec = Union[str, Callable[..., str]]


class AlgorithmSpec(BaseModel):
    """One compression stage as supplied by the user."""

    algorithm: CodecSpec = Field(default="gzip", description="Codec identifier or callable")
    filename: Optional[FilenameSpec] = Field(default=None, description="Output name pattern")
    compression_options: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="compressionOptions",
        description="Options passed to the codec"
    )

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        extra = "forbid"


class CompressionOptions(BaseModel):
    """Options accepted by the compressor."""

    test: Optional[PathRule] = Field(default=None, description="Assets to test against")
    include: Optional[PathRule] = Field(default=None, description="Assets to include")
    exclude: Optional[PathRule] = Field(default=None, description="Assets to exclude")

    algorithm: CodecSpec = Field(default="gzip", description="Codec used when algorithms is empty")
    algorithms: List[AlgorithmSpec] = Field(
        default_factory=list,
        description="Compression stages, applied in order"
    )
    filename: FilenameSpec = Field(default=DEFAULT_FILENAME, description="Output name pattern")
    compression_options: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="compressionOptions",
        description="Options passed to the codec"
    )

    threshold: int = Field(default=0, ge=0, description="Minimum asset size in bytes")
    min_ratio: float = Field(
        default=0.8,
        ge=0,
        alias="minRatio",
        description="Maximum compressed/original size ratio worth keeping"
    )
    delete_original_assets: Union[bool, Literal["keep-source-map"]] = Field(
        default=False,
        alias="deleteOriginalAssets",
        description="Whether and how originals are removed after the last stage"
    )

    class Config:
        """Pydantic configuration."""

        populate_by_name = True
        extra = "forbid"


class PrecompressConfig(BaseModel):
    """Main configuration for precompress."""

    compression: CompressionOptions = Field(default_factory=CompressionOptions)

    cache_dir: Path = Field(
        default_factory=lambda: Path.home() / ".cache/precompress",
        description="Directory of the persistent compression cache"
    )
    cache_enabled: bool = Field(default=True, description="Persist compressed results between runs")

    # Runtime settings
    log_level: str = Field(default="INFO", description="Logging level")
    max_workers: int = Field(default=4, ge=1, description="Max codecs running at once")

    class Config:
        """Pydantic configuration."""

        validate_assignment = True


def load_config(config_path: Optional[Path] = None) -> PrecompressConfig:
    """Load configuration from file, falling back to defaults."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        yaml = YAML(typ="safe")
        with open(config_path, "r") as f:
            data = yaml.load(f) or {}
        return PrecompressConfig(**data)

    return PrecompressConfig()


def save_config(config: PrecompressConfig, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(mode="json", by_alias=True, exclude_none=True), f)


def get_config() -> PrecompressConfig:
    """Get the global configuration instance."""

    if not hasattr(get_config, "_config"):
        get_config._config = load_config()

    return get_config._config
