"""Core configuration classes for the forwarder."""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional

# Write tuning defaults (milliseconds where applicable)
DEFAULT_BATCH_SIZE = 3
DEFAULT_FLUSH_INTERVAL = 10_000
DEFAULT_RETRY_INTERVAL = 5_000
DEFAULT_MAX_RETRIES = 3

# Trivial query per language used to prove the connection is queryable
DEFAULT_VALIDATION_QUERIES = {
    'sql': 'SHOW TABLES',
    'influxql': 'SHOW MEASUREMENTS',
}

ALLOWED_QUERY_LANGUAGES = list(DEFAULT_VALIDATION_QUERIES)


@dataclass
class WriteTuning:
    """Buffered-write knobs handed to the InfluxDB client at construction time."""

    batch_size: int = DEFAULT_BATCH_SIZE
    flush_interval: int = DEFAULT_FLUSH_INTERVAL  # ms
    retry_interval: int = DEFAULT_RETRY_INTERVAL  # ms
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        for name in ('flush_interval', 'retry_interval', 'max_retries'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'batch_size': self.batch_size,
            'flush_interval': self.flush_interval,
            'retry_interval': self.retry_interval,
            'max_retries': self.max_retries,
        }


@dataclass
class InfluxDBConfig:
    """Connection settings for a single InfluxDB target.

    url, token, org and bucket are required and have no defaults.
    """

    url: str
    token: str
    org: str
    bucket: str

    timeout_ms: int = 10_000
    validation_query: Optional[str] = None  # Defaults to the language's trivial query
    query_language: str = 'sql'
    tls_ca: Optional[str] = None  # Path to CA bundle if not in system trust store
    verify_ssl: bool = True
    tuning: WriteTuning = field(default_factory=WriteTuning)

    def __post_init__(self):
        """Validate configuration after initialization."""
        for name in ('url', 'token', 'org', 'bucket'):
            if not getattr(self, name):
                raise ValueError(f"{name} required for InfluxDB connection")

        if self.query_language not in ALLOWED_QUERY_LANGUAGES:
            raise ValueError(f"query_language must be one of {ALLOWED_QUERY_LANGUAGES}")

        if not self.validation_query:
            self.validation_query = DEFAULT_VALIDATION_QUERIES[self.query_language]

        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        # The store client assumes https when no scheme is given; do the same for ping
        if '://' not in self.url:
            self.url = f"https://{self.url}"
        self.url = self.url.rstrip('/')

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_args(cls, args) -> 'InfluxDBConfig':
        """Create configuration from parsed command line arguments."""
        tuning = WriteTuning(
            batch_size=getattr(args, 'batchSize', DEFAULT_BATCH_SIZE),
            flush_interval=getattr(args, 'flushInterval', DEFAULT_FLUSH_INTERVAL),
            retry_interval=getattr(args, 'retryInterval', DEFAULT_RETRY_INTERVAL),
            max_retries=getattr(args, 'maxRetries', DEFAULT_MAX_RETRIES),
        )
        return cls(
            url=getattr(args, 'influxdbUrl', None),
            token=getattr(args, 'influxdbToken', None),
            org=getattr(args, 'influxdbOrg', None),
            bucket=getattr(args, 'influxdbBucket', None),
            tls_ca=getattr(args, 'tlsCa', None),
            tuning=tuning,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, token redacted, for logging."""
        return {
            'url': self.url,
            'token': '[REDACTED]',
            'org': self.org,
            'bucket': self.bucket,
            'timeout_ms': self.timeout_ms,
            'validation_query': self.validation_query,
            'query_language': self.query_language,
            'tls_ca': self.tls_ca,
            'verify_ssl': self.verify_ssl,
            'tuning': self.tuning.to_dict(),
        }
