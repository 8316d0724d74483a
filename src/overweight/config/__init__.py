from .loader import ConfigSource, NormalizedConfig, SizeRule, ensure_normalized, load_config, normalize_config

__all__ = ["ConfigSource", "NormalizedConfig", "SizeRule", "ensure_normalized", "load_config", "normalize_config"]
