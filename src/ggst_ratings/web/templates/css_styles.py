"""
CSS styles for GGST player rating pages.
"""


def get_css_content() -> str:
    """Return the stylesheet shared by all player pages."""
    return """:root {
    --main-bg: #f8f9fa;
    --card-bg: #ffffff;
    --text-color: #333333;
    --text-color-secondary: #666666;
    --border-color: #dee2e6;
    --good-color: #2e7d32;
    --bad-color: #c62828;
    --unsure-color: #9e9e9e;
    --accent-color: #667eea;
}

* {
    margin: 0;
    padding: 0;
    box-sizing: border-box;
}

body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: var(--main-bg);
    color: var(--text-color);
    line-height: 1.5;
}

.container {
    max-width: 960px;
    margin: 0 auto;
    padding: 20px;
}

header {
    margin-bottom: 20px;
}

.subtitle, .other-names, .timestamp {
    color: var(--text-color-secondary);
}

.tag {
    display: inline-block;
    font-size: 0.5em;
    padding: 2px 8px;
    border-radius: 4px;
    vertical-align: middle;
}

.vip-tag {
    background: var(--accent-color);
    color: #ffffff;
}

section, nav {
    background: var(--card-bg);
    border: 1px solid var(--border-color);
    border-radius: 8px;
    padding: 16px;
    margin-bottom: 20px;
}

h2 {
    margin-bottom: 10px;
}

.ranks {
    list-style: none;
    margin: 8px 0;
}

.notification.cheater-notice {
    background: #fdecea;
    border: 1px solid var(--bad-color);
    border-radius: 8px;
    padding: 16px;
    margin-bottom: 20px;
}

.table {
    width: 100%;
    border-collapse: collapse;
}

.table th, .table td {
    padding: 6px 8px;
    border-bottom: 1px solid var(--border-color);
    text-align: left;
}

.matchup-good td:last-child,
.history-win td:last-child {
    color: var(--good-color);
}

.matchup-bad td:last-child,
.history-loss td:last-child {
    color: var(--bad-color);
}

.matchup-unsure td {
    color: var(--unsure-color);
}

.other-characters ul {
    list-style: none;
}

.button {
    padding: 6px 14px;
    border: 1px solid var(--border-color);
    border-radius: 4px;
    background: var(--card-bg);
    cursor: pointer;
}

.history-controls {
    margin: 10px 0;
}
"""
