#!/usr/bin/env python3
"""
GGST Rating Workflow Script

Runs the complete pipeline once:
1. Pull new replays
2. Rate every finished rating period
3. Generate the static rating pages

Common usage:
    python workflow.py                    # Full pipeline with prompt
    python workflow.py --auto-confirm    # Full pipeline without prompt
    python workflow.py --pull-only       # Only pull replays
    python workflow.py --ui-only         # Only generate web UI
"""

import argparse
import logging
import os
import sqlite3
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

import requests

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from ggst_ratings.core.database import connect
from ggst_ratings.utils.sync_games import CONFIG_FILE, ReplayClient, grab_games, load_config, rate_pending
from ggst_ratings.web.file_generator import generate_complete_web_ui


def print_header():
    """Print script header with current timestamp."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print("=" * 60)
    print("🚀 GGST Rating Workflow")
    print(f"📅 Started: {timestamp}")
    print("=" * 60)


def print_step(step: str, description: str):
    print(f"\n📋 Step: {step}")
    print(f"   {description}")
    print("-" * 40)


def pull_replays(config: Dict, pages: int = None) -> bool:
    print_step("1", "Pulling replays")

    client = ReplayClient(config['replay_api_url'], config['min_floor'], config['max_floor'])
    conn = connect(config['database_path'])
    try:
        new_games = grab_games(conn, client, pages or config['pages_per_pull'])
    except requests.exceptions.RequestException as e:
        print(f"❌ Error fetching replays: {e}")
        return False
    finally:
        conn.close()

    print(f"✅ Stored {new_games} new games")
    return True


def rate_games(config: Dict) -> bool:
    print_step("2", "Rating finished periods")

    conn = connect(config['database_path'])
    try:
        rated = rate_pending(conn)
    except sqlite3.Error as e:
        print(f"❌ Rating update failed: {e}")
        return False
    finally:
        conn.close()

    print(f"✅ Rated {rated} periods")
    return True


def generate_web_ui(config: Dict) -> bool:
    print_step("3", "Generating web UI")

    try:
        result = generate_complete_web_ui(
            db_path=config['database_path'],
            output_dir=Path(config['web_ui_output']),
            page_size=config['history_page_size'],
            max_pages=config['history_pages'],
        )
    except sqlite3.Error as e:
        print(f"❌ Web UI generation failed: {e}")
        return False

    print(f"✅ Generated {result['player_pages']} player pages")
    return True


def main():
    """Main workflow orchestrator."""
    parser = argparse.ArgumentParser(description='GGST Rating Workflow')
    parser.add_argument('--config', default=CONFIG_FILE, help='Configuration file')
    parser.add_argument('--auto-confirm', action='store_true',
                        help='Skip confirmation prompt')
    parser.add_argument('--pages', type=int,
                        help='Number of replay pages to pull')
    step = parser.add_mutually_exclusive_group()
    step.add_argument('--pull-only', action='store_true',
                      help='Only pull replays')
    step.add_argument('--rate-only', action='store_true',
                      help='Only rate finished periods')
    step.add_argument('--ui-only', action='store_true',
                      help='Only generate web UI')

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    print_header()
    config = load_config(args.config)

    print(f"\n📋 Configuration Summary:")
    print(f"   Database: {config['database_path']}")
    print(f"   Replay API: {config['replay_api_url']}")
    print(f"   Web UI Output: {config['web_ui_output']}")

    if args.pull_only:
        operations = ['pull']
    elif args.rate_only:
        operations = ['rate']
    elif args.ui_only:
        operations = ['ui']
    else:
        operations = ['pull', 'rate', 'ui']

    if not args.auto_confirm:
        print(f"\n🎯 Operations to run: {' → '.join(operations)}")
        confirm = input("\nProceed? (Y/n): ").strip().lower()
        if confirm in ['n', 'no']:
            print("🛑 Operation cancelled by user")
            return 0

    start_time = datetime.now()
    success_count = 0

    try:
        if 'pull' in operations:
            if pull_replays(config, args.pages):
                success_count += 1
            else:
                print("⚠️  Pull failed, but continuing with remaining operations...")

        if 'rate' in operations:
            if rate_games(config):
                success_count += 1
            else:
                print("❌ Rating failed. Stopping workflow.")
                return 1

        if 'ui' in operations:
            if not Path(config['database_path']).exists():
                print(f"❌ Database {config['database_path']} not found")
                return 1
            if generate_web_ui(config):
                success_count += 1
            else:
                return 1
    except KeyboardInterrupt:
        print("\n\n🛑 Workflow interrupted by user")
        return 1

    duration = datetime.now() - start_time
    print("\n" + "=" * 60)
    print("📊 Workflow Summary")
    print("=" * 60)
    print(f"⏱️  Duration: {duration}")
    print(f"✅ Successful operations: {success_count}/{len(operations)}")

    if success_count == len(operations):
        print("🎉 All operations completed successfully!")
        return 0
    print("⚠️  Some operations failed. Check the output above for details.")
    return 1


if __name__ == '__main__':
    sys.exit(main())
