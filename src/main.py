"""
Main application entry point for the NationSense gateway.
"""

# Standard library imports
import argparse
import sys
from pathlib import Path

# Third-party imports
import uvicorn
from dotenv import load_dotenv

# Local imports
from common.config import load_config
from common.logging import get_logger, log_startup_message, setup_logging
from gateway.websocket import create_gateway_app

# Load environment variables from .env file at module level
load_dotenv()

logger = get_logger(__name__)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="NationSense WebSocket gateway")
    parser.add_argument("--config", type=Path, help="Path to config.yaml")
    parser.add_argument("--port", type=int, help="Override the port to run on")
    parser.add_argument("--host", type=str, help="Override the host to run on")
    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    try:
        args = parse_args()
        config = load_config(args.config)
        setup_logging(config)

        # The credential is checked lazily on the first model call
        app = create_gateway_app(config)

        host = args.host or config.gateway.host
        port = args.port or config.gateway.port

        log_startup_message(
            "starting_server",
            host=host,
            port=port,
            profile_model=config.providers.profile_model,
            vision_model=config.providers.vision_model,
        )

        uvicorn.run(
            app,
            host=host,
            port=port,
            log_config=None,  # Use our custom logging setup
            access_log=False,
        )

    except KeyboardInterrupt:
        logger.info(event="application_shutdown", reason="Keyboard interrupt")
    except Exception as e:
        logger.critical(event="application_crashed", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
