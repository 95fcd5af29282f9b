"""
JavaScript for the match history widget on GGST player pages.
"""


def get_javascript_content() -> str:
    """Return the history paging script shared by all player pages."""
    return """// Match history state
let historyChar = null;
let historyPage = 0;
let historyPageCount = 0;

function historyUrl(playerId, charId, page) {
    return `../../history/${playerId}/${charId}/${page}.json`;
}

function escapeHtml(text) {
    const div = document.createElement('div');
    div.textContent = text === null || text === undefined ? '' : String(text);
    return div.innerHTML;
}

function formatRating(rating, deviation) {
    if (rating === null || rating === undefined) {
        return '-';
    }
    return `${rating} <small>±${deviation}</small>`;
}

function renderHistory(data) {
    const body = document.getElementById('history-body');
    body.innerHTML = data.games.map(game => `
        <tr class="${game.result === 'W' ? 'history-win' : 'history-loss'}">
            <td>${escapeHtml(game.timestamp)}</td>
            <td>${escapeHtml(game.floor)}</td>
            <td>${formatRating(game.own_rating, game.own_deviation)}</td>
            <td><a href="../${game.opponent_id}/${game.opponent_char_short}.html">${escapeHtml(game.opponent_name)}</a></td>
            <td>${escapeHtml(game.opponent_character)}</td>
            <td>${formatRating(game.opponent_rating, game.opponent_deviation)}</td>
            <td>${game.result}</td>
        </tr>`).join('');

    const pageLabel = document.getElementById('history-page');
    pageLabel.textContent = historyPageCount > 0 ? `Page ${historyPage + 1} / ${historyPageCount}` : 'No games';
    document.getElementById('history-controls').style.display = '';
}

function fetchHistoryPage() {
    const playerId = document.body.dataset.playerId;
    fetch(historyUrl(playerId, historyChar, historyPage))
        .then(response => {
            if (!response.ok) {
                throw new Error(`HTTP ${response.status}`);
            }
            return response.json();
        })
        .then(data => {
            historyPageCount = data.page_count;
            renderHistory(data);
        })
        .catch(error => {
            console.error('Failed to load match history:', error);
            document.getElementById('history-page').textContent = 'History unavailable';
            document.getElementById('history-controls').style.display = '';
        });
}

function load_history(charId) {
    historyChar = charId;
    historyPage = 0;
    document.getElementById('load-history').style.display = 'none';
    fetchHistoryPage();
}

function increment_page() {
    if (historyChar === null || historyPage >= historyPageCount - 1) {
        return;
    }
    historyPage += 1;
    fetchHistoryPage();
}

function decrement_page() {
    if (historyChar === null || historyPage <= 0) {
        return;
    }
    historyPage -= 1;
    fetchHistoryPage();
}
"""
