"""
Playground Sync - Main Module

This module serves as the entry point for the broker process. It serves
the browser-facing HTTP API with uvicorn and the assistant-facing RPC
surface on stdin/stdout, both backed by one rendezvous engine.
"""

import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import List, Optional

import uvicorn
import yaml

from .domain.rendezvous.engine import RendezvousEngine
from .infrastructure.api.app import create_app
from .infrastructure.config import BrokerConfig, ConfigLoader
from .infrastructure.config.loader import VALID_LOG_LEVELS
from .infrastructure.rpc.server import StdioRpcServer

logger = logging.getLogger("playground_sync")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="playground-sync",
        description="Relay prompts between a browser playground and an assistant.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML configuration file",
    )
    parser.add_argument(
        "--host", type=str, default=None, help="Host to bind the HTTP API to"
    )
    parser.add_argument(
        "--port", type=int, default=None, help="Port for the HTTP API"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    return parser


def load_broker_config(args: argparse.Namespace) -> BrokerConfig:
    """Load configuration and apply command line overrides.

    Raises
    ------
    FileNotFoundError
        If --config names a missing file
    ValueError
        If a configuration value is invalid
    yaml.YAMLError
        If the configuration file is malformed
    """
    loader = ConfigLoader(Path(args.config) if args.config else None)
    config = loader.get_broker_config()

    if args.host:
        config.http.host = args.host
    if args.port is not None:
        config.http.port = args.port
    if args.log_level:
        level = args.log_level.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {args.log_level}")
        config.logging.level = level

    return config


def configure_logging(level: str) -> None:
    """Send all logs to stderr; stdout is reserved for the RPC stream."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def serve_consumer(
    rpc_server: StdioRpcServer,
    engine: RendezvousEngine,
    http_server: uvicorn.Server,
) -> None:
    """Serve the consumer until its input ends, then stop the broker.

    The engine is shut down before the HTTP server is asked to exit.
    uvicorn waits for open connections to close before it stops, and a
    submitter blocked in POST /prompt only returns once the engine
    releases it with a 503.
    """
    try:
        rpc_server.serve_forever()
    finally:
        engine.shutdown()
        http_server.should_exit = True


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the broker.

    Returns
    -------
    int
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_broker_config(args)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"playground-sync: {e}", file=sys.stderr)
        return 1

    configure_logging(config.logging.level)

    engine = RendezvousEngine()
    app = create_app(engine, config.http)

    http_server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.http.host,
            port=config.http.port,
            log_level=config.logging.level.lower(),
            log_config=None,
            access_log=False,
        )
    )
    rpc_server = StdioRpcServer(engine, config=config.rpc)

    consumer_thread = threading.Thread(
        target=serve_consumer,
        args=(rpc_server, engine, http_server),
        name="consumer-rpc",
        daemon=True,
    )
    consumer_thread.start()

    logger.info(
        f"Running on http://{config.http.host}:{config.http.port}, "
        "consumer RPC on stdio"
    )
    try:
        http_server.run()
    finally:
        engine.shutdown()
        rpc_server.shutdown()

    return 0


if __name__ == "__main__":
    sys.exit(main())
