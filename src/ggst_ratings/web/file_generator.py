"""
File generation orchestration for the GGST rating pages.
Writes one HTML page per rated character, the match history pages the page
script loads, and the shared CSS/JS.
"""

import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Any, List, Tuple

from ..core.characters import character_short
from ..core.player_profile import HISTORY_PAGE_SIZE, PlayerProfileGenerator
from .templates.css_styles import get_css_content
from .templates.javascript_ui import get_javascript_content
from .templates.player_template import get_player_html


def generate_web_ui_files(output_dir: Path) -> None:
    """Generate the shared CSS and JS files."""
    output_dir.mkdir(parents=True, exist_ok=True)

    css_file = output_dir / "styles.css"
    with open(css_file, 'w', encoding='utf-8') as f:
        f.write(get_css_content())
    print(f"  Generated: {css_file}")

    js_file = output_dir / "scripts.js"
    with open(js_file, 'w', encoding='utf-8') as f:
        f.write(get_javascript_content())
    print(f"  Generated: {js_file}")


def generate_player_files(generator: PlayerProfileGenerator, player_id: int, char_id: int,
                          output_dir: Path, page_size: int = HISTORY_PAGE_SIZE,
                          max_pages: int = None) -> bool:
    """Write the page and history pages of one player character. Returns False if it has no profile."""
    player = generator.get_player(player_id, char_id)
    if player is None:
        return False

    short = character_short(char_id)
    page_dir = output_dir / "player" / str(player_id)
    page_dir.mkdir(parents=True, exist_ok=True)
    with open(page_dir / f"{short}.html", 'w', encoding='utf-8') as f:
        f.write(get_player_html(player, short))

    # Flagged players get no history
    if player.cheater_status:
        return True

    history_dir = output_dir / "history" / str(player_id) / short
    history_dir.mkdir(parents=True, exist_ok=True)

    first = generator.get_history(player_id, char_id, 0, page_size)
    page_count = first['page_count']
    if max_pages is not None:
        page_count = min(page_count, max_pages)

    # Always write page 0 so the widget can show "No games"
    pages = [first] + [generator.get_history(player_id, char_id, page, page_size)
                       for page in range(1, page_count)]
    for history in pages:
        history['page_count'] = page_count
        with open(history_dir / f"{history['page']}.json", 'w', encoding='utf-8') as f:
            json.dump(history, f)

    return True


def _generate_chunk(db_path: str, players: List[Tuple[int, int]], output_dir: Path,
                    page_size: int, max_pages: int) -> int:
    # sqlite connections can't be shared across threads
    with PlayerProfileGenerator(db_path) as generator:
        return sum(
            1 for player_id, char_id in players
            if generate_player_files(generator, player_id, char_id, output_dir, page_size, max_pages)
        )


def generate_complete_web_ui(db_path: str, output_dir: Path,
                             page_size: int = HISTORY_PAGE_SIZE,
                             max_pages: int = None,
                             max_workers: int = 4) -> Dict[str, Any]:
    """Generate every player page plus the stats file and shared assets."""
    print("🚀 Starting web UI generation...")

    with PlayerProfileGenerator(db_path) as generator:
        players = generator.get_rated_players()
        stats = {
            'distribution': generator.get_distribution(),
            'matchups': generator.get_global_matchups(),
        }

    output_dir.mkdir(parents=True, exist_ok=True)
    with open(output_dir / "stats.json", 'w', encoding='utf-8') as f:
        json.dump(stats, f, indent=2)

    print(f"  Generating pages for {len(players)} player characters...")
    chunks = [players[i::max_workers] for i in range(max_workers)]
    pages_written = 0
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(_generate_chunk, db_path, chunk, output_dir, page_size, max_pages)
            for chunk in chunks if chunk
        ]
        for future in as_completed(futures):
            pages_written += future.result()

    generate_web_ui_files(output_dir)

    print("🎉 Web UI generation finished!")
    return {
        'player_pages': pages_written,
        'stats': stats,
    }
