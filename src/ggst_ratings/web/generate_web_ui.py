#!/usr/bin/env python3
"""
Generate the static GGST rating pages.
Creates one HTML page per rated player character plus the JSON match history
pages those pages load, ready to upload to any static host.
"""

import argparse
import logging
import sqlite3
from pathlib import Path

from ..core.player_profile import HISTORY_PAGE_SIZE
from ..utils.sync_games import load_config
from .file_generator import generate_complete_web_ui


def main():
    """Main entry point for web UI generation."""
    config = load_config()

    parser = argparse.ArgumentParser(description='Generate static GGST rating pages')
    parser.add_argument('database', nargs='?', default=config['database_path'], help='SQLite database file')
    parser.add_argument('-o', '--output', help='Output directory for web UI', default=config['web_ui_output'])
    parser.add_argument('--page-size', type=int, default=config.get('history_page_size', HISTORY_PAGE_SIZE),
                        help='Games per match history page')
    parser.add_argument('--max-pages', type=int, default=config.get('history_pages'),
                        help='Maximum history pages per character')
    parser.add_argument('--max-workers', type=int, default=4, help='Max workers for page generation')

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    if not Path(args.database).exists():
        print(f"Database {args.database} not found")
        return 1

    output_dir = Path(args.output)

    try:
        result = generate_complete_web_ui(
            db_path=args.database,
            output_dir=output_dir,
            page_size=args.page_size,
            max_pages=args.max_pages,
            max_workers=args.max_workers,
        )
    except sqlite3.Error as e:
        print(f"❌ Error reading {args.database}: {e}")
        return 1

    print(f"\n✅ Web UI generation complete!")
    print(f"📁 Output directory: {output_dir.absolute()}")
    print(f"📊 Generated {result['player_pages']} player pages")

    return 0


if __name__ == '__main__':
    exit(main())
