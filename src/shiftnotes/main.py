#!/usr/bin/env python
"""Main entry point for the Shift Notes MCP server."""
import argparse
import atexit
import logging
import os
import sys
from pathlib import Path

from shiftnotes.config import ShiftNotesConfig, config
from shiftnotes.exceptions import ConfigurationError, ErrorCode
from shiftnotes.models.db_models import init_db
from shiftnotes.observability import configure_logging, metrics
from shiftnotes.server.mcp_server import ShiftNotesMcpServer


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Shift Notes MCP Server")
    parser.add_argument(
        "--base-dir",
        help="Directory stored note URLs are resolved against",
        type=str,
        default=os.environ.get("SHIFTNOTES_BASE_DIR")
    )
    parser.add_argument(
        "--static-dir",
        help="Directory for storing note content files",
        type=str,
        default=os.environ.get("SHIFTNOTES_STATIC_FILE_DIRECTORY")
    )
    parser.add_argument(
        "--public-url-prefix",
        help="Prefix of stored note URLs; must name the static directory under the base dir",
        type=str,
        default=os.environ.get("SHIFTNOTES_PUBLIC_URL_PREFIX")
    )
    parser.add_argument(
        "--database-path",
        help="SQLite database file path",
        type=str,
        default=os.environ.get("SHIFTNOTES_DATABASE_PATH")
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.environ.get("SHIFTNOTES_LOG_LEVEL", "INFO")
    )
    return parser.parse_args(argv)


def update_config(args, cfg: ShiftNotesConfig = config) -> None:
    """Update the config with command line arguments."""
    if args.base_dir:
        cfg.base_dir = Path(args.base_dir)
    if args.static_dir:
        cfg.static_file_directory = Path(args.static_dir)
    if args.public_url_prefix is not None:
        cfg.public_url_prefix = args.public_url_prefix.strip("/")
    if args.database_path:
        cfg.database_path = Path(args.database_path)


def ensure_static_dir(cfg: ShiftNotesConfig) -> Path:
    """Create the static file directory, failing if none is configured."""
    static_dir = cfg.get_static_dir()
    if static_dir is None:
        raise ConfigurationError(
            "Unable to find static file directory",
            config_key="static_file_directory",
            code=ErrorCode.CONFIG_MISSING,
        )
    static_dir.mkdir(parents=True, exist_ok=True)
    return static_dir


def _save_metrics_on_exit():
    """Save metrics to disk on server shutdown."""
    if metrics.save_metrics():
        logging.getLogger(__name__).info("Metrics saved to disk on shutdown")


def main():
    """Run the Shift Notes MCP server."""
    args = parse_args()
    update_config(args)

    # Configure logging (console + persistent file logging with rotation)
    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    try:
        log_dir = configure_logging(level=log_level, console=True)
    except OSError as e:
        # Fall back to basic console logging if file logging fails
        logging.basicConfig(level=log_level)
        logging.getLogger(__name__).warning(f"Failed to configure file logging: {e}")
        log_dir = None

    logger = logging.getLogger(__name__)
    if log_dir:
        logger.info(f"Persistent logging enabled: {log_dir}")

    atexit.register(_save_metrics_on_exit)

    try:
        static_dir = ensure_static_dir(config)
        logger.info(f"Serving note content from {static_dir}")
    except (ConfigurationError, OSError) as e:
        logger.error(f"Failed to prepare static file directory: {e}")
        sys.exit(1)

    try:
        logger.info(f"Using database: {config.get_db_url()}")
        engine = init_db(config)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        sys.exit(1)

    try:
        logger.info("Starting Shift Notes MCP server")
        server = ShiftNotesMcpServer(config, engine=engine)
        server.run()
    except Exception as e:
        logger.error(f"Error running server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
