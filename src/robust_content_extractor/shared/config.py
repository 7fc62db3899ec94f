"""Configuration classes for content extraction.

All configuration objects are frozen dataclasses: they are built once, validated
on construction and can be shared by any number of builds. Regular expressions
are stored as pattern strings so that configurations serialise cleanly; the
scoring and pruning engines compile them once when they are created.
"""

import json
import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

DEFAULT_TAG_WEIGHTS: Dict[str, float] = {
    "div": 5.0,
    "article": 0.0,
    "pre": 3.0,
    "td": 3.0,
    "blockquote": 3.0,
    "address": -3.0,
    "ol": -3.0,
    "ul": -3.0,
    "dl": -3.0,
    "dd": -3.0,
    "dt": -3.0,
    "li": -3.0,
    "h1": -5.0,
    "h2": -5.0,
    "h3": -5.0,
    "h4": -5.0,
    "h5": -5.0,
    "h6": -5.0,
    "th": -6.0,
}

NEGATIVE_PATTERN = (
    "combx|comment|captcha|contact|foot|footer|footnote|link|media|meta|promo|"
    "related|scroll|shoutbox|sidebar|sponsor|utility|tags|widget|tip|dialog"
)
POSITIVE_PATTERN = "article|body|content|entry|hentry|page|pagination|post|text"
UNLIKELY_CANDIDATES_PATTERN = (
    "combx|pager|comment|disqus|foot|header|menu|meta|nav|rss|shoutbox|sidebar|"
    "sponsor|share|bookmark|social|advert|leaderboard|instapaper_ignore|"
    "entry-unrelated"
)
MAYBE_CANDIDATE_PATTERN = "and|article|body|column|main"
DELIMITER_PATTERN = "[,，.。;；]"

VOID_ELEMENTS: Tuple[str, ...] = ("meta", "br", "link", "input", "hr", "img")
EXCLUDED_ELEMENTS: Tuple[str, ...] = (
    "meta", "iframe", "noscript", "script", "style", "aside", "object",
)
BOILERPLATE_TAGS: Tuple[str, ...] = ("head", "header", "footer")

_VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_COMPONENTS = ["character", "builder", "scoring", "pruning", "fetch", "global_"]


def _check_pattern(pattern: str, name: str) -> None:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"{name} is not a valid regular expression: {e}") from e


def _freeze(instance: Any, *names: str) -> None:
    # JSON round trips hand back lists; store tuples so configs stay immutable
    for name in names:
        object.__setattr__(instance, name, tuple(getattr(instance, name)))


@dataclass(frozen=True)
class CharacterConfig:
    """Configuration for decoding raw input into text."""

    fallback_encoding: str = "windows-1252"
    detection_sample_size: int = 2048
    chunk_size: int = 8192

    def __post_init__(self) -> None:
        """Validate character configuration."""
        if self.detection_sample_size <= 0:
            raise ValueError("detection_sample_size must be > 0")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if not self.fallback_encoding:
            raise ValueError("fallback_encoding cannot be empty")


@dataclass(frozen=True)
class BuilderConfig:
    """Configuration for tree construction from the token stream."""

    void_elements: Tuple[str, ...] = VOID_ELEMENTS
    excluded_elements: Tuple[str, ...] = EXCLUDED_ELEMENTS
    min_text_length: int = 2

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        _freeze(self, "void_elements", "excluded_elements")
        if self.min_text_length < 0:
            raise ValueError("min_text_length must be >= 0")


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and patterns used by the scoring engine."""

    # Read-only view; excluded from hashing because mappings are unhashable
    tag_weights: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_TAG_WEIGHTS)),
        hash=False,
    )
    negative_pattern: str = NEGATIVE_PATTERN
    positive_pattern: str = POSITIVE_PATTERN
    class_weight: float = 25.0
    article_tags: Tuple[str, ...] = ("article",)
    article_bonus: float = 25.0
    paragraph_tags: Tuple[str, ...] = ("p", "pre")
    delimiter_pattern: str = DELIMITER_PATTERN
    max_delimiters: int = 15
    length_divisor: float = 100.0
    max_length_bonus: float = 3.0
    grandparent_factor: float = 0.5

    def __post_init__(self) -> None:
        """Validate scoring configuration."""
        _freeze(self, "article_tags", "paragraph_tags")
        object.__setattr__(
            self, "tag_weights", MappingProxyType(dict(self.tag_weights))
        )
        _check_pattern(self.negative_pattern, "negative_pattern")
        _check_pattern(self.positive_pattern, "positive_pattern")
        _check_pattern(self.delimiter_pattern, "delimiter_pattern")
        if self.max_delimiters < 0:
            raise ValueError("max_delimiters must be >= 0")
        if self.length_divisor <= 0:
            raise ValueError("length_divisor must be > 0")
        if self.max_length_bonus < 0:
            raise ValueError("max_length_bonus must be >= 0")
        if not (0.0 <= self.grandparent_factor <= 1.0):
            raise ValueError("grandparent_factor must be between 0.0 and 1.0")


@dataclass(frozen=True)
class PruningConfig:
    """Patterns and tags that classify an element as boilerplate."""

    enabled: bool = True
    boilerplate_tags: Tuple[str, ...] = BOILERPLATE_TAGS
    unlikely_pattern: str = UNLIKELY_CANDIDATES_PATTERN
    rescue_pattern: str = MAYBE_CANDIDATE_PATTERN

    def __post_init__(self) -> None:
        """Validate pruning configuration."""
        _freeze(self, "boilerplate_tags")
        _check_pattern(self.unlikely_pattern, "unlikely_pattern")
        _check_pattern(self.rescue_pattern, "rescue_pattern")


@dataclass(frozen=True)
class FetchConfig:
    """Configuration for retrieving pages over HTTP."""

    timeout_seconds: float = 20.0
    max_bytes: int = 5 * 1024 * 1024
    max_redirects: int = 5
    verify_tls: bool = True
    user_agent: str = "robust-content-extractor/0.1.0"

    def __post_init__(self) -> None:
        """Validate fetch configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")


@dataclass(frozen=True)
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"
    enable_diagnostics: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in _VALID_LOG_LEVELS:
            raise ValueError(f"logging_level must be one of {_VALID_LOG_LEVELS}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ExtractorConfig:
    """Complete configuration for the extraction pipeline.

    Immutable and therefore safe to share between builds running on different
    documents at the same time.
    """

    character: CharacterConfig = field(default_factory=CharacterConfig)
    builder: BuilderConfig = field(default_factory=BuilderConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    pruning: PruningConfig = field(default_factory=PruningConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the assembled configuration."""
        scored_but_excluded = set(self.scoring.paragraph_tags) & set(
            self.builder.excluded_elements
        )
        if scored_but_excluded:
            raise ConfigValidationError(
                f"Paragraph tags {sorted(scored_but_excluded)} are excluded "
                "from the tree and can never be scored",
                field_name="scoring.paragraph_tags",
                suggestions=[
                    "Remove the tags from builder.excluded_elements",
                    "Remove the tags from scoring.paragraph_tags",
                ],
            )

    def override(self, **kwargs: Any) -> "ExtractorConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Field overrides; ``component__field`` addresses a field of
                a nested component configuration

        Returns:
            New ExtractorConfig instance with overrides applied

        Example:
            >>> config = ExtractorConfig()
            >>> config.override(scoring__class_weight=30.0, pruning__enabled=False)
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=[f"Use one of {_COMPONENTS}"],
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for component in _COMPONENTS:
                if component in nested_overrides:
                    new_fields[component] = replace(
                        getattr(self, component), **nested_overrides[component]
                    )
            for key, value in nested_overrides.items():
                if key not in _COMPONENTS:
                    new_fields[key] = value
            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, Mapping):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractorConfig":
        """Create configuration from dictionary.

        Unknown keys are ignored so that configuration files written for newer
        versions still load.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            field_values: Dict[str, Any] = {}
            for field_name, field_info in target_class.__dataclass_fields__.items():
                if field_name not in data_dict:
                    continue
                value = data_dict[field_name]
                field_type = field_info.type
                if hasattr(field_type, "__dataclass_fields__"):
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"Section '{field_name}' must be a mapping",
                            field_name=field_name,
                        )
                    value = _dict_to_dataclass(value, field_type)
                field_values[field_name] = value
            return target_class(**field_values)

        try:
            result = _dict_to_dataclass(data, cls)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e
        if not isinstance(result, cls):
            raise ConfigValidationError(f"Failed to deserialize to {cls.__name__}")
        return result

    @classmethod
    def from_json(cls, json_str: str) -> "ExtractorConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ExtractorConfig":
        """Create the standard configuration."""
        return cls(name="default")

    @classmethod
    def aggressive(cls) -> "ExtractorConfig":
        """Create a preset that removes navigation-like containers more eagerly."""
        return cls(
            builder=BuilderConfig(
                excluded_elements=EXCLUDED_ELEMENTS + ("form", "svg", "template"),
                min_text_length=3,
            ),
            pruning=PruningConfig(
                boilerplate_tags=BOILERPLATE_TAGS + ("nav", "menu"),
            ),
            name="aggressive",
            description="Prunes navigation containers and ignores very short text",
        )

    @classmethod
    def no_pruning(cls) -> "ExtractorConfig":
        """Create a preset that keeps every element, for inspecting scores."""
        return cls(
            pruning=PruningConfig(enabled=False),
            name="no_pruning",
            description="Scores the full tree without removing boilerplate",
        )

    @classmethod
    def preset(cls, name: str) -> "ExtractorConfig":
        """Look up a preset by name."""
        presets = {
            "default": cls.default,
            "aggressive": cls.aggressive,
            "no_pruning": cls.no_pruning,
        }
        if name not in presets:
            raise ConfigValidationError(
                f"Unknown preset: {name}",
                field_name="preset",
                suggestions=sorted(presets),
            )
        return presets[name]()


PRESET_NAMES = ("default", "aggressive", "no_pruning")
