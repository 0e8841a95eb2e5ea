PICKLE = 'pickle'
ROUND_ROBIN = 'round-robin'
QUICK_KNOCKOUT = 'quick-knockout'
ONE_VS_ONE = 'one-vs-one'
TWO_VS_TWO = 'two-vs-two'

VALID_FORMATS = (PICKLE, ROUND_ROBIN, QUICK_KNOCKOUT, ONE_VS_ONE, TWO_VS_TWO)
DEFAULT_FORMAT = PICKLE

FORMAT_DISPLAY_NAMES = {
    PICKLE: 'Pickle Format',
    ROUND_ROBIN: 'Round Robin',
    QUICK_KNOCKOUT: 'Quick Knockout',
    ONE_VS_ONE: '1 vs 1',
    TWO_VS_TWO: '2 vs 2',
}

# Formats that play out in a single round
SINGLE_ROUND_FORMATS = (ROUND_ROBIN, ONE_VS_ONE, TWO_VS_TWO)

# format -> (required roster size, players per team)
FIXED_SIZE_FORMATS = {
    ONE_VS_ONE: (2, 1),
    TWO_VS_TWO: (4, 2),
}


def display_name(game_format):
    return FORMAT_DISPLAY_NAMES.get(game_format, game_format)


def is_fixed_size(game_format):
    return game_format in FIXED_SIZE_FORMATS


def team_sizing(game_format, num_players):
    """
    Return (num_teams, players_per_team, has_odd_player) for a roster.

    Fixed formats return None when the roster size does not match; the
    caller decides how to report that.
    """
    if game_format in FIXED_SIZE_FORMATS:
        required, per_team = FIXED_SIZE_FORMATS[game_format]
        if num_players != required:
            return None
        return required // per_team, per_team, False
    return num_players // 2, 2, num_players % 2 != 0
