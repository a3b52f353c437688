"""Entry point for forwarding pipeline records to InfluxDB.

Reads records from a JSON / JSON lines file (or stdin) and writes them, or
runs a query against the bucket.
"""

import argparse
import sys
import logging
from typing import Optional

from .client import ForwarderClient
from .config import Settings
from .core.config import (
    WriteTuning, DEFAULT_BATCH_SIZE, DEFAULT_FLUSH_INTERVAL,
    DEFAULT_RETRY_INTERVAL, DEFAULT_MAX_RETRIES
)
from .core.exceptions import ForwarderError
from .core.logging_config import LoggingConfigurator
from .read.json_reader import JsonReader


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""

    parser = argparse.ArgumentParser(
        description='Forward telemetry records to InfluxDB',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Forward a JSON lines file
  python -m forwarder.main --fromJson ./records.jsonl \\
                           --influxdbUrl http://db.org.co:8181 --influxdbToken mytoken \\
                           --influxdbOrg acme --influxdbBucket telemetry

  # Read records from stdin, settings from a config file
  cat records.jsonl | python -m forwarder.main --config forwarder.yaml --fromJson -
        """
    )

    # Input selection (mutually exclusive)
    source_group = parser.add_mutually_exclusive_group(required=True)
    source_group.add_argument('--fromJson', type=str, default=None,
                              help="JSON or JSON lines file with records to forward ('-' for stdin)")
    source_group.add_argument('--query', type=str, default=None,
                              help='Query to run against the bucket instead of writing')

    # InfluxDB specific options
    influx_group = parser.add_argument_group('InfluxDB Configuration')
    influx_group.add_argument('--config', type=str, default=None,
                              help='YAML or JSON config file with influxdb_* settings')
    influx_group.add_argument('--influxdbUrl', type=str, default=None,
                              help='InfluxDB server URL. Example: https://db.example.com:8181')
    influx_group.add_argument('--influxdbToken', type=str, default=None,
                              help='InfluxDB authentication token')
    influx_group.add_argument('--influxdbOrg', type=str, default=None,
                              help='InfluxDB organization name')
    influx_group.add_argument('--influxdbBucket', type=str, default=None,
                              help='InfluxDB bucket (database) name')
    influx_group.add_argument('--tlsCa', type=str, default=None,
                              help='Path to CA certificate for verifying InfluxDB TLS connections (if not in system trust store).')

    # Write tuning
    tuning_group = parser.add_argument_group('Write Tuning')
    tuning_group.add_argument('--batchSize', type=int, default=DEFAULT_BATCH_SIZE,
                              help=f'Points per batch (default: {DEFAULT_BATCH_SIZE})')
    tuning_group.add_argument('--flushInterval', type=int, default=DEFAULT_FLUSH_INTERVAL,
                              help=f'Flush interval in ms (default: {DEFAULT_FLUSH_INTERVAL})')
    tuning_group.add_argument('--retryInterval', type=int, default=DEFAULT_RETRY_INTERVAL,
                              help=f'Retry interval in ms (default: {DEFAULT_RETRY_INTERVAL})')
    tuning_group.add_argument('--maxRetries', type=int, default=DEFAULT_MAX_RETRIES,
                              help=f'Maximum write retries (default: {DEFAULT_MAX_RETRIES})')

    # Debugging
    debug_group = parser.add_argument_group('Debugging')
    debug_group.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                             default='INFO', help='Set logging level (default: INFO)')
    debug_group.add_argument('--logfile', type=str, default=None,
                             help='Path to log file (default: stdout only)')

    return parser


def validate_arguments(args) -> Optional[str]:
    """Validate command line arguments.

    Returns:
        Error message if validation fails, None if valid
    """
    for field in ['batchSize', 'flushInterval', 'retryInterval', 'maxRetries']:
        if getattr(args, field) < 0:
            return f"--{field} must not be negative"
    if args.batchSize < 1:
        return "--batchSize must be at least 1"
    return None


def main(argv=None) -> int:
    """Main entry point."""

    parser = create_argument_parser()
    args = parser.parse_args(argv)

    error_msg = validate_arguments(args)
    if error_msg:
        parser.error(error_msg)

    LoggingConfigurator.setup_logging(log_level=args.log_level, log_file=args.logfile)

    try:
        settings = Settings(config_file=args.config)
        config = settings.to_influxdb_config(
            url=args.influxdbUrl,
            token=args.influxdbToken,
            org=args.influxdbOrg,
            bucket=args.influxdbBucket,
            tls_ca=args.tlsCa,
            tuning=WriteTuning(
                batch_size=args.batchSize,
                flush_interval=args.flushInterval,
                retry_interval=args.retryInterval,
                max_retries=args.maxRetries,
            ),
        )
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1

    logging.info("=== InfluxDB Forwarder Startup ===")
    logging.info(f"InfluxDB URL: {config.url}")
    logging.info(f"InfluxDB Org: {config.org}")
    logging.info(f"InfluxDB Bucket: {config.bucket}")
    logging.info("InfluxDB Token: [REDACTED]")
    logging.info(f"Write Tuning: {config.tuning.to_dict()}")

    records = None
    if args.fromJson is not None:
        try:
            records = JsonReader.read_records(args.fromJson)
        except ForwarderError as e:
            logging.error(f"Input error: {e}")
            return 1

    client = ForwarderClient(config)
    try:
        client.connect()

        if records is None:
            results = client.query(args.query)
            logging.info(f"Query returned {len(results)} records")
        else:
            points = client.write_many(records)
            logging.info(f"Forwarded {len(records)} records as {len(points)} points")
            logging.info(f"Batch stats: {client.writer.get_batch_stats()}")

    except KeyboardInterrupt:
        logging.info("Received interrupt, shutting down...")
    except ForwarderError as e:
        logging.error(f"Forwarder error: {e}")
        if args.log_level == 'DEBUG':
            raise
        return 1
    finally:
        if client.is_connected():
            client.disconnect()

    return 0


if __name__ == '__main__':
    sys.exit(main())
