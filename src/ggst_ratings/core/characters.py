"""
Static game tables: characters, floors and platforms.
"""

from typing import Union

# Index is the character code stored in the database
CHARACTERS = [
    ('SO', 'Sol'),
    ('KY', 'Ky'),
    ('MA', 'May'),
    ('AX', 'Axl'),
    ('CH', 'Chipp'),
    ('PO', 'Potemkin'),
    ('FA', 'Faust'),
    ('MI', 'Millia'),
    ('ZA', 'Zato-1'),
    ('RA', 'Ramlethal'),
    ('LE', 'Leo'),
    ('NA', 'Nagoriyuki'),
    ('GI', 'Giovanna'),
    ('AN', 'Anji'),
    ('IN', 'I-No'),
    ('GO', 'Goldlewis'),
    ('JC', "Jack-O'"),
    ('HA', 'Happy Chaos'),
    ('BA', 'Baiken'),
    ('TE', 'Testament'),
]

CELESTIAL_FLOOR = 99
FLOORS = list(range(1, 11)) + [CELESTIAL_FLOOR]

PLATFORMS = {
    1: 'PS',
    2: 'Xbox',
    3: 'PC',
}


def character_name(code: int) -> str:
    return CHARACTERS[code][1]


def character_short(code: int) -> str:
    return CHARACTERS[code][0]


def character_code(shortname: str) -> int:
    """Look up a character code from its shortname, e.g. 'SO' -> 0."""
    shortname = shortname.upper()
    for code, (short, _) in enumerate(CHARACTERS):
        if short == shortname:
            return code
    raise KeyError(f"Unknown character: {shortname}")


def floor_name(floor: int) -> str:
    if floor == CELESTIAL_FLOOR:
        return 'Celestial'
    return f'Floor {floor}'


def platform_name(platform: Union[int, str, None]) -> str:
    """Display name for a platform code or name."""
    if platform is None:
        return '?'
    if isinstance(platform, int):
        return PLATFORMS.get(platform, '?')
    if platform.isdigit():
        return PLATFORMS.get(int(platform), '?')
    for name in PLATFORMS.values():
        if name.lower() == platform.lower():
            return name
    return '?'
