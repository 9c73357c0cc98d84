from reprofile.core.config.manager import ConfigError, ConfigManager

__all__ = ["ConfigError", "ConfigManager"]
