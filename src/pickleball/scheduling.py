"""
Match schedule generation for each game format.

Round 1 is built from the accepted teams. pickle and quick-knockout then
build later rounds from the finished matches of the previous one; the other
formats are played in a single round.
"""
import logging
from itertools import combinations
from typing import List, Optional

from pickleball.formats import (
    ONE_VS_ONE, PICKLE, QUICK_KNOCKOUT, ROUND_ROBIN, SINGLE_ROUND_FORMATS, TWO_VS_TWO,
)
from pickleball.models import BYE_LETTER, Match, PlayerSlot, Team

logger = logging.getLogger(__name__)


def create_bye_team(original_team: Optional[Team] = None) -> Team:
    """Opponent for a bye match. Always lettered BYE."""
    if original_team is None:
        return Team(letter=BYE_LETTER, players=[], total_points=0)
    players = [
        PlayerSlot(
            source_player_id=p.source_player_id,
            name=p.name or 'Bye',
            mobile=p.mobile,
            user_id=p.user_id,
        )
        for p in original_team.players
    ]
    return Team(letter=BYE_LETTER, players=players, total_points=original_team.total_points)


def _add_match(matches, round_number, team_a, team_b, bracket_type=None):
    matches.append(Match(
        round_number=round_number,
        match_number=len(matches) + 1,
        team_a=team_a,
        team_b=team_b,
        bracket_type=bracket_type,
    ))


def _add_bye_match(matches, round_number, team, bracket_type=None):
    matches.append(Match(
        round_number=round_number,
        match_number=len(matches) + 1,
        team_a=team,
        team_b=create_bye_team(team),
        bracket_type=bracket_type,
        is_bye=True,
    ))


def _pair_off(matches, round_number, teams, bracket_type):
    """Pair teams in order; a team left without an opponent gets a bye."""
    for i in range(0, len(teams), 2):
        if i + 1 < len(teams):
            _add_match(matches, round_number, teams[i], teams[i + 1], bracket_type)
        else:
            _add_bye_match(matches, round_number, teams[i], bracket_type)


def _round_robin_schedule(teams, round_number):
    """
    Every pair plays once. Pairs are ordered so that teams from the previous
    match rest where possible, preferring teams that have played least.
    """
    remaining = list(combinations(teams, 2))
    played = {team.letter: 0 for team in teams}
    matches = []

    while remaining:
        if matches:
            last = {matches[-1].team_a.letter, matches[-1].team_b.letter}
            rested = [pair for pair in remaining
                      if pair[0].letter not in last and pair[1].letter not in last]
            candidates = rested or remaining
            pair = min(candidates, key=lambda p: played[p[0].letter] + played[p[1].letter])
        else:
            pair = remaining[0]

        _add_match(matches, round_number, pair[0], pair[1])
        played[pair[0].letter] += 1
        played[pair[1].letter] += 1
        remaining.remove(pair)

    logger.debug('Round robin schedule: %s',
                 [(m.match_number, m.team_a.letter, m.team_b.letter) for m in matches])
    return matches


def generate_matches(teams: List[Team], game_format: str, round_number: int = 1) -> List[Match]:
    """Create the first round of matches for a new game."""
    matches = []

    if game_format == ROUND_ROBIN:
        return _round_robin_schedule(teams, round_number)

    if game_format in (ONE_VS_ONE, TWO_VS_TWO):
        if len(teams) == 2:
            _add_match(matches, round_number, teams[0], teams[1], 'final')
        return matches

    if game_format == QUICK_KNOCKOUT and len(teams) == 2:
        _add_match(matches, round_number, teams[0], teams[1], 'final')
        return matches

    # pickle and quick-knockout: sequential pairing, an odd last team sits out
    for i in range(0, len(teams) - 1, 2):
        _add_match(matches, round_number, teams[i], teams[i + 1])
    return matches


def _split_results(round_matches):
    """Return (winners, losers, letters of teams that took part) for a finished round."""
    winners, losers, played = [], [], set()
    for match in round_matches:
        if match.is_bye:
            if match.team_a and not match.team_a.is_bye:
                winners.append(match.team_a)
                played.add(match.team_a.letter)
            continue
        winner, loser = match.winning_team, match.losing_team
        if winner is not None and not winner.is_bye:
            winners.append(winner)
            played.add(winner.letter)
        if loser is not None and not loser.is_bye:
            losers.append(loser)
            played.add(loser.letter)
    return winners, losers, played


def _teams_with_bye(game, played_letters):
    return [team for team in game.teams if team.letter not in played_letters]


def _bracket_winner(round_matches, bracket_type):
    """Winner of the last played match of a bracket; a bye match's team overrides it."""
    winner = None
    for match in round_matches:
        if match.bracket_type == bracket_type and not match.is_bye and match.winning_team is not None:
            winner = match.winning_team
    bye = next((m for m in round_matches if m.bracket_type == bracket_type and m.is_bye), None)
    if bye is not None:
        winner = bye.team_a or bye.team_b
    return winner


def _pickle_next_round(game, completed_round, round_matches):
    matches = []
    next_round = completed_round + 1

    if completed_round == 1:
        winners, losers, played = _split_results(round_matches)
        bye_teams = _teams_with_bye(game, played)
        logger.debug('Pickle round 1: winners=%s losers=%s byes=%s',
                     [t.letter for t in winners], [t.letter for t in losers],
                     [t.letter for t in bye_teams])

        # Winners bracket: round 1 bye teams face winners first
        winners_index = 0
        for bye_team in bye_teams:
            if winners_index < len(winners):
                _add_match(matches, next_round, winners[winners_index], bye_team, 'winners')
                winners_index += 1
            else:
                _add_bye_match(matches, next_round, bye_team, 'winners')
        _pair_off(matches, next_round, winners[winners_index:], 'winners')

        _pair_off(matches, next_round, losers, 'losers')

    elif completed_round == 2:
        winners_winner = _bracket_winner(round_matches, 'winners')
        losers_winner = _bracket_winner(round_matches, 'losers')
        if winners_winner is not None and losers_winner is not None:
            _add_match(matches, next_round, winners_winner, losers_winner, 'final')

    return matches


def _knockout_results(round_matches):
    """(winner, loser, score difference) for every real match of a round."""
    results = []
    played = set()
    for match in round_matches:
        if match.is_bye:
            if match.team_a and not match.team_a.is_bye:
                played.add(match.team_a.letter)
            continue
        for team in (match.team_a, match.team_b):
            if team is not None and not team.is_bye:
                played.add(team.letter)
        results.append((match.winning_team, match.losing_team, match.score_difference))
    return results, played


def _smart_seeding(results, bye_teams):
    """
    With a round 1 bye and one or two results, the winner with the biggest
    margin skips round 2 and waits in the final. Returns (dominant, challenger)
    or (None, None); the challenger plays the bye team in round 2.
    """
    if not bye_teams or len(results) not in (1, 2):
        return None, None
    ranked = sorted(results, key=lambda r: r[2], reverse=True)
    if len(ranked) == 1:
        # Three teams: the round 1 loser gets a second chance against the bye team
        return ranked[0][0], ranked[0][1]
    return ranked[0][0], ranked[1][0]


def _unique_teams(teams):
    unique, seen = [], set()
    for team in teams:
        if team is not None and not team.is_bye and team.letter not in seen:
            unique.append(team)
            seen.add(team.letter)
    return unique


def _add_bronze_and_final(matches, round_number, bronze_contenders, finalists):
    contenders = _unique_teams(bronze_contenders)
    if len(contenders) >= 2:
        _add_match(matches, round_number, contenders[0], contenders[1], 'bronze')
    elif len(contenders) == 1:
        _add_bye_match(matches, round_number, contenders[0], 'bronze')

    finalists = _unique_teams(finalists)
    if len(finalists) >= 2:
        _add_match(matches, round_number, finalists[0], finalists[1], 'final')
    elif len(finalists) == 1:
        _add_bye_match(matches, round_number, finalists[0], 'final')


def _knockout_next_round(game, completed_round, round_matches):
    matches = []
    next_round = completed_round + 1

    if completed_round == 1:
        results, played = _knockout_results(round_matches)
        bye_teams = _teams_with_bye(game, played)
        dominant, challenger = _smart_seeding(results, bye_teams)

        if dominant is not None:
            logger.debug('Quick knockout seeding: dominant=%s challenger=%s bye=%s',
                         dominant.letter, challenger.letter, bye_teams[0].letter)
            _add_match(matches, next_round, challenger, bye_teams[0], 'semifinal')
        else:
            winners = [winner for winner, _, _ in results] + bye_teams
            if len(winners) == 2:
                # Four teams: round 2 already decides the medals
                losers = [loser for _, loser, _ in results]
                _add_bronze_and_final(matches, next_round, losers, winners)
            else:
                _pair_off(matches, next_round, winners, 'semifinal')

    elif completed_round == 2:
        round1_results, round1_played = _knockout_results(game.round_matches(1, finished_only=True))
        dominant, _ = _smart_seeding(round1_results, _teams_with_bye(game, round1_played))

        finalists, semifinal_losers = [], []
        for match in round_matches:
            if match.bracket_type != 'semifinal':
                continue
            if match.is_bye:
                finalists.append(match.team_a)
                continue
            finalists.append(match.winning_team)
            semifinal_losers.append(match.losing_team)

        if dominant is not None:
            finalists.insert(0, dominant)
            if len(round1_results) >= 2:
                semifinal_losers = [loser for _, loser, _ in round1_results] + semifinal_losers

        _add_bronze_and_final(matches, next_round, semifinal_losers, finalists)

    return matches


def generate_next_round_matches(game, completed_round: int) -> List[Match]:
    """Build the matches that follow a finished round. Empty when the game is over."""
    if game.game_type in SINGLE_ROUND_FORMATS:
        return []

    round_matches = game.round_matches(completed_round, finished_only=True)
    if any(m.bracket_type == 'final' for m in round_matches):
        return []

    if game.game_type == PICKLE:
        matches = _pickle_next_round(game, completed_round, round_matches)
    elif game.game_type == QUICK_KNOCKOUT:
        matches = _knockout_next_round(game, completed_round, round_matches)
    else:
        matches = []

    logger.info('Round %d of %s game %s produced %d new matches',
                completed_round, game.game_type, game.id, len(matches))
    return matches
