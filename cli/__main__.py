"""Entry point for wordcraft CLI client."""

import argparse
import sys

from cli.api_client import WordCraftAPIClient
from cli.console import ConsoleUI


def main():
    parser = argparse.ArgumentParser(description='WordCraft - spelling adventures')
    parser.add_argument(
        '--server',
        default='http://localhost:8000',
        help='Server URL (default: http://localhost:8000)'
    )
    parser.add_argument(
        '--user',
        default='default',
        help='User ID (default: default)'
    )
    parser.add_argument(
        '--theme',
        default='space',
        help='Story theme: space, treasure, fantasy, ocean or jungle (default: space)'
    )
    args = parser.parse_args()

    client = WordCraftAPIClient(base_url=args.server, user_id=args.user)
    ui = ConsoleUI(client, theme=args.theme)

    try:
        ui.run()
    except KeyboardInterrupt:
        print('\nGoodbye!')
        sys.exit(0)


if __name__ == '__main__':
    main()
