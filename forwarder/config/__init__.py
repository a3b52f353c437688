"""
Configuration management for the InfluxDB forwarder.
"""

import os
import yaml
import json
from typing import Optional
import logging

from ..core.config import InfluxDBConfig

# Initialize logger
LOG = logging.getLogger(__name__)


class Settings:
    """
    Configuration settings for the forwarder.
    Supports loading from a YAML or JSON file, then environment variables.
    """

    def __init__(self, config_file: Optional[str] = None, from_env: bool = True):
        """
        Initialize settings from a config file or environment variables.

        Args:
            config_file: Path to YAML or JSON configuration file
            from_env: Whether to load settings from environment variables
        """
        # Default values
        self.influxdb_url: Optional[str] = None
        self.influxdb_token: Optional[str] = None
        self.influxdb_org: Optional[str] = None
        self.influxdb_bucket: Optional[str] = None
        self.tls_ca: Optional[str] = None

        # Load configuration in order of precedence
        if config_file:
            self._load_from_file(config_file)

        if from_env:
            self._load_from_env()

    def _load_from_file(self, config_file: str) -> None:
        """Load settings from a YAML or JSON file."""
        if not os.path.exists(config_file):
            LOG.warning(f"Config file not found: {config_file}")
            return

        with open(config_file, 'r', encoding='utf-8') as f:
            if config_file.lower().endswith('.yaml') or config_file.lower().endswith('.yml'):
                config = yaml.safe_load(f) or {}
            elif config_file.lower().endswith('.json'):
                config = json.load(f)
            else:
                LOG.warning(f"Unsupported config file format: {config_file}")
                return

        self.influxdb_url = config.get('influxdb_url', self.influxdb_url)
        self.influxdb_token = config.get('influxdb_token', self.influxdb_token)
        self.influxdb_org = config.get('influxdb_org', self.influxdb_org)
        self.influxdb_bucket = config.get('influxdb_bucket', self.influxdb_bucket)
        self.tls_ca = config.get('tls_ca', self.tls_ca)

        LOG.info(f"Loaded configuration from {config_file}")

    def _load_from_env(self) -> None:
        """Load settings from environment variables."""
        self.influxdb_url = os.getenv('INFLUXDB_URL', self.influxdb_url)
        self.influxdb_token = os.getenv('INFLUXDB_TOKEN', self.influxdb_token)
        self.influxdb_org = os.getenv('INFLUXDB_ORG', self.influxdb_org)
        self.influxdb_bucket = os.getenv('INFLUXDB_BUCKET', self.influxdb_bucket)
        self.tls_ca = os.getenv('INFLUXDB_TLS_CA', self.tls_ca)

    def to_influxdb_config(self, **overrides) -> InfluxDBConfig:
        """Build an InfluxDBConfig; explicit non-empty overrides win over loaded values."""
        values = {
            'url': self.influxdb_url,
            'token': self.influxdb_token,
            'org': self.influxdb_org,
            'bucket': self.influxdb_bucket,
            'tls_ca': self.tls_ca,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return InfluxDBConfig(**values)
