"""
HTML template for GGST player rating pages.
"""

from html import escape
from typing import List

from ...core.player_profile import Player, CharacterRatingData, CharacterSummary, Matchup


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _rating(value: int, deviation: int) -> str:
    return f"{value} <small>±{deviation}</small>"


def _header_html(player: Player) -> str:
    vip_badge = ""
    if player.vip_status:
        title = f' title="{escape(player.vip_notes)}"' if player.vip_notes else ""
        vip_badge = f'<span class="tag vip-tag"{title}>VIP</span>'

    aliases = ""
    if player.other_names:
        names = ", ".join(escape(name) for name in player.other_names)
        aliases = f'<p class="other-names">Also known as: {names}</p>'

    return f"""<header>
            <h1 class="player-name">{escape(player.name)} {vip_badge}</h1>
            <p class="subtitle">{escape(player.platform)} · {escape(player.data.character_name)}</p>
            {aliases}
        </header>"""


def _cheater_html(player: Player) -> str:
    cheater_type = escape(player.cheater_type or "flagged")
    return f"""<div class="notification cheater-notice">
            This player has been flagged ({cheater_type}). Their ratings are hidden and they are excluded from rankings.
        </div>"""


def _rating_html(data: CharacterRatingData) -> str:
    ranks = []
    if data.character_rank is not None:
        ranks.append(f'<li>{escape(data.character_name)} rank: <strong>#{data.character_rank}</strong></li>')
    if data.global_rank is not None:
        ranks.append(f'<li>Global rank: <strong>#{data.global_rank}</strong></li>')
    ranks_html = f'<ul class="ranks">{"".join(ranks)}</ul>' if ranks else ""

    top_rating = ""
    if data.top_rating_value is not None:
        top_rating = f"""<p class="top-rating">Top rating: {_rating(data.top_rating_value, data.top_rating_deviation)}
                <span class="timestamp">({escape(data.top_rating_timestamp)})</span></p>"""

    top_defeated = ""
    if data.top_defeated_id is not None:
        link = f"../{data.top_defeated_id}/{data.top_defeated_char_short}.html"
        top_defeated = f"""<p class="top-defeated">Top defeated:
                <a href="{link}">{escape(data.top_defeated_name)} ({escape(data.top_defeated_character)})</a>
                {_rating(data.top_defeated_value, data.top_defeated_deviation)}
                <span class="timestamp">({escape(data.top_defeated_timestamp)})</span></p>"""

    return f"""<section class="rating-box">
            <h2>{escape(data.character_name)}</h2>
            <p class="rating">Rating: {_rating(data.rating_value, data.rating_deviation)}</p>
            <p class="games">Games: {data.game_count} · Win rate: {_percent(data.win_rate)}</p>
            {ranks_html}
            {top_rating}
            {top_defeated}
        </section>"""


def _matchups_html(matchups: List[Matchup]) -> str:
    if not matchups:
        return ""
    rows = "\n".join(
        f"""                <tr class="{m.display_class}">
                    <td>{escape(m.character_name)}</td>
                    <td>{m.game_count}</td>
                    <td>{_percent(m.win_rate)}</td>
                    <td>{m.rating_offset:+d}</td>
                </tr>"""
        for m in matchups
    )
    return f"""<section class="matchups">
            <h2>Matchups</h2>
            <table class="table matchup-table">
                <thead>
                    <tr><th>Character</th><th>Games</th><th>Win rate</th><th>Rating offset</th></tr>
                </thead>
                <tbody>
{rows}
                </tbody>
            </table>
        </section>"""


def _characters_html(characters: List[CharacterSummary], hide_ratings: bool) -> str:
    if not characters:
        return ""
    items = []
    for c in characters:
        rating = "" if hide_ratings else f' <span class="rating">{_rating(c.rating_value, c.rating_deviation)}</span>'
        items.append(
            f'<li><a href="{c.shortname}.html">{escape(c.name)}</a>{rating}'
            f' <span class="games">({c.game_count} games)</span></li>'
        )
    return f"""<nav class="other-characters">
            <h2>Other characters</h2>
            <ul>{"".join(items)}</ul>
        </nav>"""


def _history_html(char_id: str) -> str:
    return f"""<section class="history">
            <h2>Match history</h2>
            <button class="button" id="load-history" onclick="load_history('{char_id}')">Load history</button>
            <div class="history-controls" id="history-controls" style="display: none;">
                <button class="button" onclick="decrement_page()">&laquo; Newer</button>
                <span id="history-page"></span>
                <button class="button" onclick="increment_page()">Older &raquo;</button>
            </div>
            <table class="table history-table">
                <thead>
                    <tr><th>Time</th><th>Floor</th><th>Rating</th><th>Opponent</th><th>Character</th><th>Opponent rating</th><th>Result</th></tr>
                </thead>
                <tbody id="history-body"></tbody>
            </table>
        </section>"""


def get_player_html(player: Player, char_id: str) -> str:
    """Return the rendered player page for one character (char_id is its shortname)."""
    data = player.data
    if player.cheater_status:
        body = _cheater_html(player)
    else:
        body = "\n        ".join(part for part in (
            _rating_html(data),
            _matchups_html(data.matchups),
        ) if part)

    characters = _characters_html(player.other_characters, hide_ratings=player.cheater_status)
    history = "" if player.cheater_status else _history_html(escape(char_id))

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(player.name)} ({escape(data.character_name)}) - GGST Ratings</title>
    <link rel="stylesheet" href="../../styles.css">
    <script src="../../scripts.js"></script>
</head>
<body data-player-id="{player.id}">
    <div class="container">
        {_header_html(player)}
        {body}
        {characters}
        {history}
    </div>
</body>
</html>
"""
