#!/usr/bin/env python3
"""
AI Connection Check

Sends one prompt through the same resilient client the bot uses to judge job
descriptions and prints the answer. Handy to verify `.env` before a long run.

Usage:
    python run_ai_check.py                      # Sends "Hello"
    python run_ai_check.py "Is Python fun?"     # Sends your own prompt
    python run_ai_check.py --env-file my.env    # Reads connection details from another file
    python run_ai_check.py --stats              # Also prints retry/AI counters

Ctrl+C lets the request in flight finish (or time out) and skips the remaining retries.
Press it twice to quit at once.

Author: Suraj Panwar
"""

import sys
import signal
import argparse
import logging
from dataclasses import replace

from config.settings import verbose_logging
from modules import metrics
from modules.helpers import setup_logging, critical_error_log, print_lg
from modules.validator import validate_config
from modules.fault_tolerance import CancellationToken
from modules.retry_policy import RetryPolicy
from modules.ai.session_config import ConfigurationError, load_session_config
from modules.ai.resilient_client import FALLBACK_ANSWER, ResilientAIClient

logger = logging.getLogger(__name__)


def setup_signal_handlers(token: CancellationToken) -> None:
    """
    Turn the first Ctrl+C / SIGTERM into a stop request instead of a traceback.
    A second Ctrl+C raises `KeyboardInterrupt` as usual.
    """
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping... (Ctrl+C again to quit now)")
        token.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Send a prompt to the configured AI API with retries and a timeout",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('prompt', nargs='?', default="Hello",
                        help='Prompt to send (default: "Hello")')
    parser.add_argument('--env-file', default=None,
                        help='Path of the .env file holding BASE_URL, API_KEY and MODEL')
    parser.add_argument('--verbose', action='store_true',
                        help='Log raw responses and every retry decision')
    parser.add_argument('--stats', action='store_true',
                        help='Print retry and AI counters after the request')
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose or verbose_logging)

    try:
        validate_config()
        config = load_session_config(env_file=args.env_file)
    except (ConfigurationError, ValueError) as e:
        critical_error_log("Configuration problem, fix it and run again.", e)
        return 2

    token = CancellationToken()
    setup_signal_handlers(token)

    # a stop request ends the run after the attempt in flight
    client = ResilientAIClient(config, policy=replace(RetryPolicy.for_ai(), abort_on_cancel=True))
    print_lg(f"Using {client!r}")
    answer = client.send_chat_request(args.prompt, cancel_token=token)
    print_lg(f"AI answer: {answer}")

    if args.stats:
        print_lg(metrics.get_metrics(), pretty=True)
    return 1 if answer == FALLBACK_ANSWER and metrics.get_metric("ai_requests_failed") else 0


if __name__ == "__main__":
    sys.exit(main())
