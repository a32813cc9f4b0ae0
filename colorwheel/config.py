"""
Startup configuration: command-line flags, environment variables, and
developer-rig local mode defaults (in that order of precedence)
"""
import argparse
import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .pubsub import LOCAL_RIG_API, TWITCH_API

logger = logging.getLogger("colorwheel")

LOCAL_SECRET = "kkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkkk"
LOCAL_OWNER_ID = "100000001"

USER_COOLDOWN = 1.0              # seconds between clicks per user
USER_COOLDOWN_RESET_INTERVAL = 60.0
CHANNEL_COOLDOWN = 1.0           # seconds between broadcasts per channel
COLOR_WHEEL_ROTATION = 30        # degrees per cycle


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    secret: bytes
    client_id: str
    owner_id: str
    local: bool = False
    host: str = "localhost"
    port: int = 8081
    cert: Optional[Path] = None
    key: Optional[Path] = None
    verbose: bool = False
    user_cooldown: float = USER_COOLDOWN
    user_cooldown_reset_interval: float = USER_COOLDOWN_RESET_INTERVAL
    channel_cooldown: float = CHANNEL_COOLDOWN
    rotation: float = COLOR_WHEEL_ROTATION

    @property
    def api_base(self) -> str:
        return LOCAL_RIG_API if self.local else TWITCH_API


def missing_online(name: str, flag: str, variable: str) -> str:
    return (
        f"Extension {name} required in online mode.\n"
        f'Use argument "{flag} <{name}>" or environment variable "{variable}".'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Color wheel extension backend service")
    parser.add_argument("-s", "--secret", help="Extension secret (base64)")
    parser.add_argument("-c", "--client-id", help="Extension client ID")
    parser.add_argument("-o", "--owner-id", help="Extension owner ID")
    parser.add_argument("-l", "--local", metavar="MANIFEST_FILE", help="Developer rig local mode")
    parser.add_argument("--host", help="Address to bind (default: localhost)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 8081)")
    parser.add_argument("--cert", type=Path, help="TLS certificate file")
    parser.add_argument("--key", type=Path, help="TLS private key file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _resolve(label, flag_value, environ, variables, local, local_value, missing):
    if flag_value:
        return flag_value
    for variable in variables:
        if environ.get(variable):
            logger.info("Using environment variable %s for %s", variable, label)
            return environ[variable]
    if local:
        logger.info("Using local mode %s", label)
        return local_value
    raise ConfigError(missing)


def _manifest_client_id(manifest: str) -> Optional[str]:
    path = Path(os.getcwd(), manifest).resolve()
    try:
        with open(path) as f:
            return json.load(f).get("clientId")
    except (OSError, ValueError) as e:
        raise ConfigError(f"Cannot read local manifest {path}: {e}") from e


def load_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build Settings from argv and the environment

    Raises:
        ConfigError: a required value is unresolved in online mode, or the
            secret is not valid base64, or PORT is not a number
    """
    args = build_parser().parse_args(argv)
    if environ is None:
        environ = os.environ
    local = bool(args.local)

    owner_id = _resolve(
        "owner-id", args.owner_id, environ, ("EXT_OWNER_ID", "ENV_OWNER_ID"), local, LOCAL_OWNER_ID,
        missing_online("owner ID", "-o", "EXT_OWNER_ID"),
    )
    raw_secret = _resolve(
        "secret", args.secret, environ, ("EXT_SECRET", "ENV_SECRET"), local, LOCAL_SECRET,
        missing_online("secret", "-s", "EXT_SECRET"),
    )
    local_client_id = _manifest_client_id(args.local) if local else None
    client_id = _resolve(
        "client-id", args.client_id, environ, ("EXT_CLIENT_ID", "ENV_CLIENT_ID"), local, local_client_id,
        missing_online("client ID", "-c", "EXT_CLIENT_ID"),
    )
    if not client_id:
        raise ConfigError(missing_online("client ID", "-c", "EXT_CLIENT_ID"))

    try:
        secret = base64.b64decode(raw_secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigError(f"Extension secret is not valid base64: {e}") from e

    try:
        port = args.port or int(environ.get("PORT", 8081))
    except ValueError as e:
        raise ConfigError(f"PORT must be a number: {e}") from e

    if bool(args.cert) != bool(args.key):
        raise ConfigError("--cert and --key must be given together")

    return Settings(
        secret=secret,
        client_id=client_id,
        owner_id=owner_id,
        local=local,
        host=args.host or environ.get("HOST", "localhost"),
        port=port,
        cert=args.cert,
        key=args.key,
        verbose=args.verbose,
    )
