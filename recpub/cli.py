# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Command-line interface for RecPub.

This module provides the main CLI entry point for the recpub tool.

Commands:

    publish: Upload the recording and attach it to the call post
    check: Validate configuration and the source file (no network calls)

Environment:

    SITE_URL, AUTH_TOKEN, FILEPATH, CHANNEL_ID, POST_ID are required.
    RECORDING_ID and PLUGIN_ID are optional. A .env file is honoured.

Example:
    Publish with defaults:
        ```bash
        $ recpub publish
        ```

    Publish with a policy file and verbose output:
        ```bash
        $ recpub publish --config policy.yaml --verbose
        ```

    Check configuration only:
        ```bash
        $ recpub check --env-file job.env
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration error or retries exhausted)

Note:
    Errors are written to stderr. Verbose mode shows full tracebacks on
    errors for debugging. Debug mode implies verbose mode.

"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys

from recpub.config import load_config
from recpub.core import check_config, publish_recording
from recpub.exceptions import ConfigError, RecPubError, RetriesExhaustedError
from recpub.logging import get_logger, set_global_logger


def _print_error(message: str, show_traceback: bool) -> None:
    print(f"Error: {message}", file=sys.stderr)
    if show_traceback:
        import traceback

        traceback.print_exc()


def cmd_publish(args: argparse.Namespace) -> int:
    """Handler for 'recpub publish' command.

    Loads the configuration, then uploads the recording and attaches it to
    the call post, retrying failed attempts with linearly growing waits.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success, 1 for failure).

    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)
    show_traceback = args.verbose or args.debug

    try:
        config = load_config(
            args.config,
            env_file=args.env_file,
            max_attempts=args.max_attempts,
            base_delay=args.retry_delay,
        )
    except ConfigError as err:
        _print_error(str(err), show_traceback)
        return 1

    print(f"Publishing recording: {config.file_path}")
    print()

    try:
        result = publish_recording(config, logger=logger)
    except RetriesExhaustedError as err:
        _print_error(
            f"failed to publish recording after {err.attempts} attempt(s): {err}",
            show_traceback,
        )
        return 1
    except RecPubError as err:
        _print_error(f"failed to publish recording: {err}", show_traceback)
        return 1

    print()
    print("=" * 70)
    print("PUBLISH RESULTS")
    print("=" * 70)
    print(f"File Path:   {result.file_path}")
    print(f"File ID:     {result.file_id}")
    print(f"Channel ID:  {result.channel_id}")
    print(f"Post ID:     {result.post_id}")
    print(f"Attempts:    {result.attempts}")
    print(f"Status:      {result.status}")
    print("=" * 70)
    print()
    print("[SUCCESS] Recording uploaded successfully!")

    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'recpub check' command.

    Validates the configuration and that the source file is readable,
    without making any network calls.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 if the configuration is usable, 1 otherwise).

    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    result = check_config(args.config, env_file=args.env_file)

    print("=" * 70)
    print("CHECK RESULTS")
    print("=" * 70)
    print(f"Status:      {result.status.upper()}")
    print(f"API URL:     {result.api_url or '-'}")
    print(f"File Path:   {result.file_path or '-'}")
    if result.file_size is not None:
        print(f"File Size:   {result.file_size} bytes")
    print("=" * 70)

    if result.errors:
        print()
        for error in result.errors:
            print(f"  [X] {error}", file=sys.stderr)
        return 1

    print()
    print("[SUCCESS] Configuration is valid!")
    return 0


def main() -> None:
    """Main entry point for the recpub CLI.

    This function is registered as the 'recpub' console script in pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="recpub",
        description="RecPub - upload call recordings and attach them to their post",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"recpub {version('recpub')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # Shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML policy file with retry/timeout overrides",
    )
    common.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this file (default: nearest .env)",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )

    # 'publish' command
    parser_publish = subparsers.add_parser(
        "publish",
        parents=[common],
        help="Upload the recording and attach it to the call post",
        description="Upload the configured recording file and attach it to the call post, retrying on failure.",
    )
    parser_publish.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Retries after the first attempt (default: from config or 20)",
    )
    parser_publish.add_argument(
        "--retry-delay",
        type=float,
        default=None,
        help="Base wait between attempts in seconds (default: from config or 5)",
    )
    parser_publish.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_publish.set_defaults(func=cmd_publish)

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        parents=[common],
        help="Validate configuration and source file (no network calls)",
        description="Check environment, policy file and source file without contacting the server.",
    )
    parser_check.set_defaults(func=cmd_check)

    # Parse and dispatch
    args = parser.parse_args()

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
