"""Configuration management for the File Organizer."""

import configparser
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_DATA_DIR = Path.home() / ".file_organizer"


@dataclass
class OrganizeConfig:
    """Organize run defaults."""
    default_workers: int = 8
    queue_size: int = 256
    default_include_hidden: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_enabled: bool = True
    file_path: Optional[Path] = None
    file_max_size_mb: int = 10
    file_backup_count: int = 5
    console_enabled: bool = True

    def __post_init__(self):
        if self.file_path is None:
            self.file_path = DEFAULT_DATA_DIR / "logs" / "organizer.log"


@dataclass
class AppConfig:
    """Main application configuration."""
    organize: OrganizeConfig = field(default_factory=OrganizeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    app_name: str = "File Organizer"
    version: str = "0.1.0"


class ConfigManager:
    """Manages application configuration stored in an INI file."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        if config_file is None:
            config_file = DEFAULT_DATA_DIR / "config.ini"

        self.config_file = Path(config_file)
        self.config = AppConfig()
        self.logger = logging.getLogger(__name__)

        if self.config_file.exists():
            self.load_from_file()
        else:
            self.save_to_file()

    def load_from_file(self) -> None:
        """Load configuration from INI file."""
        try:
            parser = configparser.ConfigParser(interpolation=None)
            parser.read(self.config_file)

            if 'organize' in parser:
                section = parser['organize']
                if 'default_workers' in section:
                    self.config.organize.default_workers = section.getint('default_workers')
                if 'queue_size' in section:
                    self.config.organize.queue_size = section.getint('queue_size')
                if 'default_include_hidden' in section:
                    self.config.organize.default_include_hidden = section.getboolean('default_include_hidden')

            if 'logging' in parser:
                log_section = parser['logging']
                if 'level' in log_section:
                    self.config.logging.level = log_section.get('level')
                if 'format' in log_section:
                    self.config.logging.format = log_section.get('format')
                if 'file_enabled' in log_section:
                    self.config.logging.file_enabled = log_section.getboolean('file_enabled')
                if 'file_path' in log_section:
                    self.config.logging.file_path = Path(log_section.get('file_path'))
                if 'file_max_size_mb' in log_section:
                    self.config.logging.file_max_size_mb = log_section.getint('file_max_size_mb')
                if 'file_backup_count' in log_section:
                    self.config.logging.file_backup_count = log_section.getint('file_backup_count')
                if 'console_enabled' in log_section:
                    self.config.logging.console_enabled = log_section.getboolean('console_enabled')

            self.logger.info(f"Configuration loaded from {self.config_file}")

        except (configparser.Error, ValueError) as e:
            # Keep defaults for anything that could not be parsed
            self.logger.error(f"Error loading configuration from {self.config_file}: {e}")

    def save_to_file(self) -> None:
        """Save current configuration to INI file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            parser = configparser.ConfigParser(interpolation=None)

            parser['organize'] = {
                'default_workers': str(self.config.organize.default_workers),
                'queue_size': str(self.config.organize.queue_size),
                'default_include_hidden': str(self.config.organize.default_include_hidden),
            }

            parser['logging'] = {
                'level': self.config.logging.level,
                'format': self.config.logging.format,
                'file_enabled': str(self.config.logging.file_enabled),
                'file_path': str(self.config.logging.file_path),
                'file_max_size_mb': str(self.config.logging.file_max_size_mb),
                'file_backup_count': str(self.config.logging.file_backup_count),
                'console_enabled': str(self.config.logging.console_enabled),
            }

            with open(self.config_file, 'w') as f:
                parser.write(f)

            self.logger.info(f"Configuration saved to {self.config_file}")

        except OSError as e:
            self.logger.error(f"Error saving configuration to {self.config_file}: {e}")

    def get_config(self) -> AppConfig:
        """Get the current configuration."""
        return self.config

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = AppConfig()
        self.save_to_file()
        self.logger.info("Configuration reset to defaults")


# Global configuration instance
_config_manager = None


def get_config() -> AppConfig:
    """Get the global application configuration."""
    return get_config_manager().get_config()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def setup_config(config_file: Optional[Path] = None) -> ConfigManager:
    """
    Set up global configuration.

    Args:
        config_file: Optional path to configuration file

    Returns:
        ConfigManager instance
    """
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager
