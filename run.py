"""
Liveness Monitor - Entry Point

Usage:
    python run.py server [--port N] [--pubkey FILE]
        Run the collector. With --pubkey, only heartbeats signed by the
        matching private key are accepted.

    python run.py client HOST [--port N] [--https] [--privkey FILE]
        Send a heartbeat to the collector at HOST every interval.

    Both accept --config FILE (YAML) and read HB_* environment variables.
    The flag style of earlier releases (-s / -c HOST) is still accepted.
"""

import argparse
import logging
import os
import sys

from core.errors import ConfigurationError
from core.log import init_logging
from core.settings import load_settings, validate_settings

logger = logging.getLogger("liveness")


def _add_common_options(parser):
    parser.add_argument("-p", "--port", type=int, default=None, help="Port number")
    parser.add_argument("--config", default=None, metavar="FILE", help="YAML settings file")
    parser.add_argument("--digest", default=None, help="Signature digest (default sha256)")
    parser.add_argument("--log-level", dest="log_level", default=None)


def build_parser():
    parser = argparse.ArgumentParser(prog="run.py", description="Heartbeat liveness monitor")
    sub = parser.add_subparsers(dest="mode", required=True)

    p_server = sub.add_parser("server", help="Run the collector")
    _add_common_options(p_server)
    p_server.add_argument("--pubkey", metavar="FILE", help="Public key for verifying heartbeats")
    p_server.add_argument("--privkey", metavar="FILE", help=argparse.SUPPRESS)

    p_client = sub.add_parser("client", help="Send heartbeats to a collector")
    p_client.add_argument("host", help="Collector host name or address")
    _add_common_options(p_client)
    p_client.add_argument("--https", action="store_true", help="Use HTTPS")
    p_client.add_argument("--privkey", metavar="FILE", help="Private key for signing heartbeats")
    p_client.add_argument("--pubkey", metavar="FILE", help=argparse.SUPPRESS)
    return parser


def build_legacy_parser():
    parser = argparse.ArgumentParser(prog="run.py")
    parser.add_argument("-s", "--server", action="store_true", help="Run the program as a server")
    parser.add_argument("-c", "--client", default=None, help="Run the program as a client")
    _add_common_options(parser)
    parser.add_argument("--https", action="store_true", help="Whether use HTTPS in client mode")
    parser.add_argument("--pubkey", metavar="FILE", help="Path to public key file (optional for server)")
    parser.add_argument("--privkey", metavar="FILE", help="Path to private key file (optional for client)")
    return parser


def parse_args(argv):
    """Return (overrides, config_path) from either command-line style."""
    if argv and argv[0].startswith("-") and argv[0] not in ("-h", "--help"):
        args = build_legacy_parser().parse_args(argv)
        server, client = args.server, args.client
    else:
        args = build_parser().parse_args(argv)
        server = args.mode == "server"
        client = getattr(args, "host", None)
    overrides = {
        "server": server,
        "client": client,
        "port": args.port,
        "https": getattr(args, "https", False),
        "pubkey": args.pubkey,
        "privkey": args.privkey,
        "digest": args.digest,
        "log_level": args.log_level,
    }
    return overrides, args.config


def run_server(settings):
    import uvicorn

    from api.main import create_app
    from signing.keys import load_verification_key

    public_key = load_verification_key(settings.pubkey) if settings.pubkey else None
    app = create_app(settings, public_key=public_key)
    logger.info("Listening on %s:%d", settings.bind_host, settings.port)
    uvicorn.run(
        app,
        host=settings.bind_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        ssl_certfile=settings.tls_certfile,
        ssl_keyfile=settings.tls_keyfile,
    )


def run_client(settings):
    from agent.emitter import HeartbeatEmitter
    from agent.screen_lock import is_interactive_session_locked
    from signing.keys import load_signing_key

    signing_key = None
    if settings.privkey:
        signing_key = load_signing_key(settings.privkey, settings.privkey_passphrase)
    emitter = HeartbeatEmitter.from_settings(
        settings,
        signing_key=signing_key,
        is_locked=is_interactive_session_locked if settings.skip_when_locked else None,
    )
    try:
        emitter.run_forever()
    except KeyboardInterrupt:
        logger.info("Stopped")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    overrides, config_path = parse_args(argv)
    init_logging(overrides.get("log_level") or os.getenv("HB_LOG_LEVEL", "INFO"))

    try:
        settings = validate_settings(load_settings(overrides, config_path=config_path))
        init_logging(settings.log_level)
        if settings.server:
            run_server(settings)
        else:
            run_client(settings)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
