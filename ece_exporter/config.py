"""
Configuration Module

Resolves exporter settings once at start-up. Each option is taken from the
command line, then the ECE_* environment variables, then the optional YAML
settings file, then the built-in defaults.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
import argparse
import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = 60
DEFAULT_ERU_COST = 6000

DEFAULT_SETTINGS = {
    'orchestrator': {
        'url': None,
        'username': None,
        'password': None,
        'apikey': None,
        'timeout': DEFAULT_TIMEOUT,
        'verify_tls': True
    },
    'web': {'host': '0.0.0.0', 'port': DEFAULT_PORT},
    'metrics': {'eru_cost': DEFAULT_ERU_COST, 'namespace': 'ece'},
    'logging': {'level': 'INFO', 'json': False}
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


class ConfigError(ValueError):
    """Raised when the settings cannot produce a usable exporter."""


@dataclass
class Settings:
    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    apikey: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    verify_tls: bool = True
    host: str = '0.0.0.0'
    port: int = DEFAULT_PORT
    eru_cost: int = DEFAULT_ERU_COST
    namespace: str = 'ece'
    log_level: str = 'INFO'
    log_json: bool = False

    def validate(self) -> None:
        """Check the base URL and that exactly one credential mode is configured."""
        if not self.url:
            raise ConfigError("The orchestrator base URL is required (--url or ECE_URL)")
        if self.apikey and (self.username or self.password):
            raise ConfigError("--apikey cannot be combined with --username/--password")
        if not self.apikey:
            if not self.username and not self.password:
                raise ConfigError("Either --apikey or --username and --password are required")
            if not (self.username and self.password):
                raise ConfigError("--username and --password must be given together")


def load_settings_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load settings from a YAML file, merged over the defaults."""
    settings = {section: dict(values) for section, values in DEFAULT_SETTINGS.items()}
    if not config_path:
        return settings

    if not os.path.exists(config_path):
        logger.warning(f"Settings file not found: {config_path}, using defaults")
        return settings

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Failed to load settings from {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {config_path} must contain a mapping")

    for section, values in data.items():
        if section not in settings:
            logger.warning(f"Ignoring unknown settings section: {section}")
            continue
        if isinstance(values, dict):
            settings[section].update(values)
    return settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Prometheus exporter for ECE allocator and proxy inventory',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Basic auth
  %(prog)s --url https://ece.example.com:12443 -u admin -p secret

  # API key, settings file for everything else
  ECE_APIKEY=... %(prog)s --url https://ece.example.com:12443 -c config/settings.yaml
        """
    )
    parser.add_argument('--config', '-c', help='Path to YAML settings file (env: ECE_CONFIG)')
    parser.add_argument('--url', '-U', help='ECE base URL (env: ECE_URL)')
    parser.add_argument('--username', '-u', help='ECE username (env: ECE_USERNAME)')
    parser.add_argument('--password', '-p', help='ECE password (env: ECE_PASSWORD)')
    parser.add_argument('--apikey', '-a', help='ECE API key (env: ECE_APIKEY)')
    parser.add_argument('--timeout', '-t', help=f'Request timeout in seconds (default: {DEFAULT_TIMEOUT})')
    parser.add_argument('--port', '-P', help=f'Port to listen on (default: {DEFAULT_PORT})')
    parser.add_argument('--host', help='Address to bind (default: 0.0.0.0)')
    parser.add_argument('--eru-cost', dest='eru_cost',
                        help=f'Yearly cost of one 64 GB unit (default: {DEFAULT_ERU_COST})')
    parser.add_argument('--namespace', help='Metric name prefix (default: ece)')
    parser.add_argument('--insecure', action='store_true', default=None,
                        help='Skip TLS certificate verification')
    parser.add_argument('--log-level', dest='log_level', help='Log level (default: INFO)')
    parser.add_argument('--log-json', dest='log_json', action='store_true', default=None,
                        help='Write log lines as JSON')
    return parser


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != '':
            return value
    return None


def _to_int(value: Any, default: int, what: str, minimum: int = 0, maximum: Optional[int] = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Supplied {what} '{value}' is not a number, defaulting to {default}")
        return default
    if number < minimum or (maximum is not None and number > maximum):
        logger.warning(f"Supplied {what} {number} is not in range, defaulting to {default}")
        return default
    return number


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def parse_settings(argv: Optional[List[str]] = None,
                   environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Resolve and validate the settings from argv, the environment and the settings file."""
    environ = os.environ if environ is None else environ
    args = build_parser().parse_args(argv)

    file_settings = load_settings_file(_first(args.config, environ.get('ECE_CONFIG')))
    orch = file_settings['orchestrator']
    web = file_settings['web']
    metrics = file_settings['metrics']
    logs = file_settings['logging']

    insecure = _first(args.insecure, environ.get('ECE_INSECURE'))
    verify_tls = not _to_bool(insecure) if insecure is not None else _to_bool(orch['verify_tls'])
    log_json = _first(args.log_json, environ.get('ECE_LOG_JSON'), logs['json'])

    settings = Settings(
        url=_first(args.url, environ.get('ECE_URL'), orch['url']),
        username=_first(args.username, environ.get('ECE_USERNAME'), orch['username']),
        password=_first(args.password, environ.get('ECE_PASSWORD'), orch['password']),
        apikey=_first(args.apikey, environ.get('ECE_APIKEY'), orch['apikey']),
        timeout=_to_int(_first(args.timeout, environ.get('ECE_TIMEOUT'), orch['timeout']),
                        DEFAULT_TIMEOUT, 'timeout', minimum=1),
        verify_tls=verify_tls,
        host=_first(args.host, environ.get('ECE_HOST'), web['host']),
        port=_to_int(_first(args.port, environ.get('ECE_PORT'), web['port']),
                     DEFAULT_PORT, 'port', minimum=1, maximum=65535),
        eru_cost=_to_int(_first(args.eru_cost, environ.get('ECE_ERU_COST'), metrics['eru_cost']),
                         DEFAULT_ERU_COST, 'ERU cost'),
        namespace=_first(args.namespace, environ.get('ECE_NAMESPACE'), metrics['namespace']) or '',
        log_level=str(_first(args.log_level, environ.get('ECE_LOG_LEVEL'), logs['level'])).upper(),
        log_json=_to_bool(log_json) if log_json is not None else False
    )
    settings.validate()
    return settings
