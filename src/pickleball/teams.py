"""
Random team generation for a room's roster.

Every call reshuffles the roster, so "Shuffle Teams" is just another call
with the same players.
"""
import logging
import random
import string
from typing import List, Optional

from pickleball.formats import DEFAULT_FORMAT, FIXED_SIZE_FORMATS, display_name, team_sizing
from pickleball.models import Player, PlayerSlot, Team

logger = logging.getLogger(__name__)

TEAM_COLORS = [
    {'primary': '#10b981', 'light': '#d1fae5'},  # Green
    {'primary': '#f97316', 'light': '#fed7aa'},  # Orange
    {'primary': '#eab308', 'light': '#fef3c7'},  # Yellow
    {'primary': '#3b82f6', 'light': '#dbeafe'},  # Blue
    {'primary': '#8b5cf6', 'light': '#ede9fe'},  # Purple
    {'primary': '#ec4899', 'light': '#fce7f3'},  # Pink
    {'primary': '#14b8a6', 'light': '#ccfbf1'},  # Teal
    {'primary': '#f59e0b', 'light': '#fef3c7'},  # Amber
]


class TeamGenerationError(Exception):
    """Roster cannot be split into teams. `title` is the short notice shown to the user."""
    title = 'Team Generation Failed'


class InsufficientPlayers(TeamGenerationError):
    title = 'Not Enough Players'

    def __init__(self, num_players=0):
        self.num_players = num_players
        super().__init__('You need at least 2 players to create teams. Please add more players to the room.')


class InvalidPlayerCount(TeamGenerationError):
    title = 'Invalid Player Count'

    def __init__(self, game_format, num_players):
        self.game_format = game_format
        self.num_players = num_players
        required = FIXED_SIZE_FORMATS[game_format][0]
        super().__init__(f'{display_name(game_format)} format requires exactly {required} players.')


class InvalidRoster(TeamGenerationError):
    title = 'Invalid Player Data'

    def __init__(self, detail):
        self.detail = detail
        super().__init__(f'Player list could not be read: {detail}')


def parse_roster(players) -> List[Player]:
    """
    Turn a roster of Player objects or player dicts into Players.

    Raises InvalidRoster for anything that is not a list of players, or for
    points that are not numeric.
    """
    if players is None:
        return []
    if not isinstance(players, (list, tuple)):
        raise InvalidRoster('expected a list of players')

    roster = []
    for index, data in enumerate(players):
        if isinstance(data, Player):
            roster.append(data)
            continue
        if not isinstance(data, dict):
            raise InvalidRoster(f'entry {index + 1} is not a player')
        try:
            roster.append(Player.from_dict(data))
        except ValueError as e:
            raise InvalidRoster(f'entry {index + 1}: {e}')
    return roster


def team_letter(index: int) -> str:
    """A, B, ..., Z, AA, AB, ... for a zero-based team index."""
    letters = string.ascii_uppercase
    letter = ''
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, len(letters))
        letter = letters[remainder] + letter
    return letter


def team_color(index: int) -> dict:
    return TEAM_COLORS[index % len(TEAM_COLORS)]


def shuffle_players(players: List[Player], rng=None) -> List[Player]:
    """Return a uniformly shuffled copy of the roster (Fisher-Yates)."""
    rng = rng or random
    shuffled = list(players)
    rng.shuffle(shuffled)
    return shuffled


def generate_teams(players: List[Player], game_format: Optional[str] = None, rng=None) -> List[Team]:
    """
    Shuffle a roster into teams for the given game format.

    one-vs-one and two-vs-two need exactly 2 and 4 players. Every other
    format builds teams of two; with an odd roster the leftover player is
    paired with a randomly chosen, already assigned player who then plays
    twice. Team points are the sum of the slots' individual points, so the
    duplicated player counts once per team.

    Raises InvalidRoster, InsufficientPlayers or InvalidPlayerCount.
    """
    rng = rng or random
    game_format = game_format or DEFAULT_FORMAT
    players = parse_roster(players)

    if len(players) < 2:
        logger.info('Not enough players to generate teams: %d', len(players))
        raise InsufficientPlayers(len(players))

    sizing = team_sizing(game_format, len(players))
    if sizing is None:
        logger.info('Invalid player count %d for %s', len(players), game_format)
        raise InvalidPlayerCount(game_format, len(players))
    num_teams, players_per_team, has_odd_player = sizing

    shuffled = shuffle_players(players, rng)

    teams = []
    for i in range(num_teams):
        chunk = shuffled[i * players_per_team:(i + 1) * players_per_team]
        teams.append(Team(
            letter=team_letter(i),
            players=[PlayerSlot.from_player(player) for player in chunk],
            color=team_color(i),
        ))

    if has_odd_player:
        leftover = shuffled[num_teams * players_per_team]
        # Duplicate from the assigned pool only, never the leftover player
        assigned_slots = [slot for team in teams for slot in team.players]
        duplicated = rng.choice(assigned_slots)
        duplicated.plays_twice = True
        teams.append(Team(
            letter=team_letter(num_teams),
            players=[
                PlayerSlot.from_player(leftover),
                PlayerSlot(
                    source_player_id=duplicated.source_player_id,
                    name=duplicated.name,
                    mobile=duplicated.mobile,
                    points=duplicated.points,
                    avatar=duplicated.avatar,
                    plays_twice=True,
                    user_id=duplicated.user_id,
                ),
            ],
            color=team_color(num_teams),
        ))

    logger.debug('Generated %d teams for %s: %s', len(teams), game_format,
                 [(t.letter, [p.name for p in t.players]) for t in teams])
    return teams


def build_game_request(room_id, game_format, teams: List[Team]) -> dict:
    """Payload for creating a game from accepted teams."""
    return {
        'roomId': room_id,
        'gameType': game_format or DEFAULT_FORMAT,
        'teams': [team.to_payload() for team in teams],
    }
