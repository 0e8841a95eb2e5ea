"""
Game lifecycle: creation from accepted teams, result submission, round
progression, medals and points.
"""
import logging

from pickleball.formats import (
    ONE_VS_ONE, PICKLE, QUICK_KNOCKOUT, ROUND_ROBIN, TWO_VS_TWO, VALID_FORMATS,
)
from pickleball.models import MEDALS, Game, Team
from pickleball.scheduling import generate_matches, generate_next_round_matches

logger = logging.getLogger(__name__)


def get_default_settings():
    """Return default scoring settings."""
    return {
        'match_win_team_points': 2,
        'match_win_individual_points': 1,
        'bye_score': [21, 0],
        'participation_points': 0.5,
        'medal_points': {
            'gold': {'individual': 3, 'team': 4},
            'silver': {'individual': 1, 'team': 2},
            'bronze': {'individual': 1, 'team': 1},
        },
    }


def merge_settings(defaults, overrides):
    """
    Overlay settings on a copy of the defaults. Nested dicts (medal_points and
    each medal) are merged key by key, so a partial override keeps the rest.
    """
    merged = dict(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


class GameError(Exception):
    pass


class GameValidationError(GameError):
    pass


class MatchNotFound(GameError):
    pass


class ActiveGameExists(GameError):
    def __init__(self, game_id):
        self.game_id = game_id
        super().__init__('There is already an active game in this room. '
                         'Please complete or cancel it before creating a new one.')


class MatchOutcome:
    """What a submitted result changed."""

    def __init__(self, match, round_finished, new_matches, awards):
        self.match = match
        self.round_finished = round_finished
        self.new_matches = new_matches
        self.awards = awards  # [(slot, individual points)]

    @property
    def next_round_created(self):
        return bool(self.new_matches)

    def __repr__(self):
        return (f"MatchOutcome(match={self.match.id}, round_finished={self.round_finished}, "
                f"new_matches={len(self.new_matches)})")


class GameManager:
    def __init__(self, settings=None):
        self.settings = merge_settings(get_default_settings(), settings)

    def create_game(self, request, created_by=None, active_games=()):
        """Build a live game with its round 1 schedule from a game request payload."""
        room_id = request.get('roomId')
        game_type = request.get('gameType')
        teams = request.get('teams')

        if not room_id or not game_type or not teams:
            raise GameValidationError('Room ID, game type, and teams are required')
        if game_type not in VALID_FORMATS:
            raise GameValidationError(
                'Invalid game type. Must be: pickle, round-robin, quick-knockout, one-vs-one, or two-vs-two')
        if not isinstance(teams, list) or len(teams) < 2:
            raise GameValidationError('At least 2 teams are required')

        for other in active_games:
            if other.room_id == room_id and other.is_active:
                raise ActiveGameExists(other.id)

        try:
            teams = [t if isinstance(t, Team) else Team.from_dict(t) for t in teams]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise GameValidationError(f'Invalid team data: {e}')

        game = Game(
            room_id=room_id,
            game_type=game_type,
            teams=teams,
            created_by=created_by,
        )
        for team in game.teams:
            team.wins = 0
            team.medal = None

        game.matches = generate_matches(game.teams, game_type, 1)
        game.status = 'live'
        logger.info('Created %s game %s in room %s with %d teams and %d matches',
                    game_type, game.id, room_id, len(game.teams), len(game.matches))
        return game

    def _award_win(self, game, letter):
        """Credit a match win to the game team with this letter. Returns the point awards."""
        team = game.team_by_letter(letter)
        if team is None:
            return []
        team.wins += 1
        team.total_points += self.settings['match_win_team_points']
        points = self.settings['match_win_individual_points']
        return [(slot, points) for slot in team.players]

    def submit_match_result(self, game, match_id, score_a, score_b):
        """
        Record a score, then advance the game when its current round is done.

        Bye matches of new rounds are finished straight away; if a whole new
        round is byes, the next one is generated too.
        """
        if score_a is None or score_b is None:
            raise GameValidationError('Both scores are required')
        try:
            score_a, score_b = int(score_a), int(score_b)
        except (TypeError, ValueError):
            raise GameValidationError('Scores must be whole numbers')
        if score_a < 0 or score_b < 0:
            raise GameValidationError('Scores cannot be negative')
        if score_a == score_b:
            raise GameValidationError('Scores cannot be equal')

        match = game.match_by_id(match_id)
        if match is None:
            raise MatchNotFound(f"Match {match_id} not found")
        if not game.is_active:
            raise GameValidationError('Game is already completed')
        if match.is_finished:
            raise GameValidationError('Match result was already submitted')

        match.score_a = score_a
        match.score_b = score_b
        match.winner = 'A' if score_a > score_b else 'B'
        match.status = 'finished'
        awards = self._award_win(game, match.winning_team.letter)

        round_finished = all(m.is_finished for m in game.round_matches(game.current_round))
        new_matches = []

        advancing = round_finished
        while advancing:
            if game.game_type == ROUND_ROBIN:
                game.status = 'completed'
                break
            next_matches = generate_next_round_matches(game, game.current_round)
            if not next_matches:
                game.status = 'completed'
                break
            game.matches.extend(next_matches)
            game.current_round = next_matches[0].round_number
            new_matches.extend(next_matches)
            for bye_match in (m for m in next_matches if m.is_bye):
                bye_match.score_a, bye_match.score_b = self.settings['bye_score']
                bye_match.winner = 'A'
                bye_match.status = 'finished'
                awards.extend(self._award_win(game, bye_match.team_a.letter))
            advancing = all(m.is_finished for m in next_matches)

        logger.info('Game %s match %s finished %d-%d; round %d, status %s',
                    game.id, match.id, score_a, score_b, game.current_round, game.status)
        return MatchOutcome(match, round_finished, new_matches, awards)

    def _set_medal(self, game, medal, letter):
        team = game.team_by_letter(letter) if letter else None
        if team is None:
            return False
        team.medal = medal
        game.medals[medal] = {
            'team': team.letter,
            'players': [slot.key for slot in team.players],
        }
        return True

    def _final_medals(self, game, final_match):
        if final_match is None:
            return
        self._set_medal(game, 'gold', final_match.winning_team.letter)
        if not final_match.is_bye:
            self._set_medal(game, 'silver', final_match.losing_team.letter)

    def calculate_winners(self, game):
        """Assign gold, silver and bronze according to the game format and mark the game completed."""
        finished = [m for m in game.matches if m.is_finished and m.winner]

        if game.game_type == ROUND_ROBIN:
            ranked = sorted(game.teams, key=lambda t: -t.wins)
            for medal, team in zip(MEDALS, ranked):
                self._set_medal(game, medal, team.letter)

        elif game.game_type == PICKLE:
            final = next((m for m in finished if m.bracket_type == 'final'), None)
            self._final_medals(game, final)
            if final is not None:
                finalists = {final.team_a.letter, final.team_b.letter}
                losers_bracket = [m for m in finished if m.bracket_type == 'losers']
                winners_bracket = [m for m in finished if m.bracket_type == 'winners' and not m.is_bye]
                candidates = []
                if losers_bracket:
                    candidates.append(losers_bracket[-1].winning_team)
                if winners_bracket:
                    candidates.append(winners_bracket[-1].losing_team)
                bronze = next((t for t in candidates if t.letter not in finalists), None)
                if bronze is not None:
                    self._set_medal(game, 'bronze', bronze.letter)

        elif game.game_type == QUICK_KNOCKOUT:
            final = next((m for m in finished if m.bracket_type == 'final'), None)
            self._final_medals(game, final)
            bronze_match = next((m for m in finished if m.bracket_type == 'bronze'), None)
            if final is not None and bronze_match is not None:
                self._set_medal(game, 'bronze', bronze_match.winning_team.letter)

        elif game.game_type in (ONE_VS_ONE, TWO_VS_TWO):
            self._final_medals(game, finished[0] if finished else None)

        game.status = 'completed'
        logger.info('Game %s medals: %s', game.id,
                    {medal: game.medals[medal]['team'] for medal in MEDALS})
        return game.medals

    def assign_points(self, game):
        """
        Medal and participation points for every player of the game.

        Returns {player key: {'name', 'individual_points', 'team_points', 'won'}},
        or an empty dict when points were already assigned.
        """
        if game.points_assigned:
            return {}

        awards = {}

        def entry(slot):
            return awards.setdefault(slot.key, {
                'name': slot.name,
                'individual_points': 0,
                'team_points': 0,
                'won': False,
            })

        for team in game.teams:
            for slot in team.players:
                entry(slot)

        medal_points = self.settings['medal_points']
        for medal in MEDALS:
            team = game.team_by_letter(game.medals.get(medal, {}).get('team'))
            if team is None or not team.players:
                continue
            points = medal_points[medal]
            team_share = points['team'] / len(team.players)
            for slot in team.players:
                record = entry(slot)
                record['individual_points'] += points['individual']
                record['team_points'] += team_share
                record['won'] = True

        for record in awards.values():
            if not record['won']:
                record['individual_points'] += self.settings['participation_points']

        game.points_assigned = True
        logger.info('Assigned points for game %s to %d players', game.id, len(awards))
        return awards
