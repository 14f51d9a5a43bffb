import codecs
import json
import os

from hl7_errors import ConfigError
from mllp_session import STRATEGIES

CONFIG_PATH = os.environ.get(
    'HL7_SENDER_CONFIG', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json'))

DEFAULTS = {
    'HOST': '127.0.0.1',
    'PORT': 7779,
    'TIMEOUT': 10,
    'STRATEGY': 'whole',
    'ENCODING': 'utf-8',
}


def load_config(path=None):
    """Return DEFAULTS overlaid with whatever config.json provides."""
    path = path or CONFIG_PATH
    config = dict(DEFAULTS)
    if not os.path.exists(path):
        return config
    try:
        with open(path, 'r') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(stored, dict):
        raise ConfigError(f"Config file {path} must hold a JSON object.")
    config.update({key: stored[key] for key in DEFAULTS if key in stored})
    check_config(config, path)
    return config


def check_config(config, path):
    if not isinstance(config['HOST'], str) or not config['HOST']:
        raise ConfigError(f"{path}: HOST must be a non-empty string, got {config['HOST']!r}")
    port = config['PORT']
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigError(f"{path}: PORT must be an integer between 1 and 65535, got {port!r}")
    timeout = config['TIMEOUT']
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))
                                or timeout <= 0):
        raise ConfigError(f"{path}: TIMEOUT must be a positive number or null, got {timeout!r}")
    if config['STRATEGY'] not in STRATEGIES:
        raise ConfigError(f"{path}: STRATEGY must be one of {sorted(STRATEGIES)}, got {config['STRATEGY']!r}")
    try:
        codecs.lookup(config['ENCODING'])
    except (LookupError, TypeError) as e:
        raise ConfigError(f"{path}: unknown ENCODING {config['ENCODING']!r}") from e


def save_config(host, port, path=None):
    path = path or CONFIG_PATH
    stored = {}
    if os.path.exists(path):
        try:
            with open(path, 'r') as f:
                stored = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot update config file {path}: {e}") from e
    if not isinstance(stored, dict):
        raise ConfigError(f"Config file {path} must hold a JSON object.")
    stored.update({'HOST': host, 'PORT': port})
    with open(path, 'w') as f:
        json.dump(stored, f, indent=2)
