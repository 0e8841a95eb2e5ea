"""
Read-only views over games and the player points ledger.
"""
from collections import OrderedDict
from typing import Dict, List

from pickleball.formats import display_name


def is_bye_match(match) -> bool:
    """Bye matches are flagged, or have the same team on both sides."""
    if match.is_bye:
        return True
    if match.team_a is None or match.team_b is None:
        return True
    return match.team_a.letter == match.team_b.letter


def visible_matches(matches) -> List:
    """Matches worth showing: no byes, ordered by round then match number."""
    shown = [m for m in matches if not is_bye_match(m)]
    return sorted(shown, key=lambda m: (m.round_number, m.match_number))


def matches_by_round(matches) -> Dict[int, List]:
    rounds = OrderedDict()
    for match in visible_matches(matches):
        rounds.setdefault(match.round_number, []).append(match)
    return rounds


def team_standings(game) -> List[dict]:
    """
    Rank a game's teams for the results screen.

    Ranking: wins -> total points -> letter
    """
    played = {}
    for match in game.matches:
        if not match.is_finished or is_bye_match(match):
            continue
        for team in (match.team_a, match.team_b):
            played[team.letter] = played.get(team.letter, 0) + 1

    rows = [{
        'letter': team.letter,
        'players': [slot.name for slot in team.players],
        'wins': team.wins,
        'matches_played': played.get(team.letter, 0),
        'total_points': team.total_points,
        'medal': team.medal,
    } for team in game.teams]
    rows.sort(key=lambda r: (-r['wins'], -r['total_points'], r['letter']))
    for position, row in enumerate(rows, start=1):
        row['position'] = position
    return rows


def leaderboard(ledger: Dict[str, dict], sort_by: str = 'points', limit: int = 50) -> List[dict]:
    """
    Top players from the points ledger.

    sort_by is one of 'points', 'wins' or 'streak'; anything else sorts by points.
    """
    sort_key = sort_by if sort_by in ('wins', 'streak') else 'points'

    rows = []
    for key, record in ledger.items():
        games = record.get('total_games', 0)
        wins = record.get('total_wins', 0)
        rows.append({
            'key': key,
            'name': record.get('name'),
            'points': record.get('individual_points', 0),
            'team_points': record.get('team_points', 0),
            'wins': wins,
            'games': games,
            'streak': record.get('streak', 0),
            'win_percentage': round(wins / games * 100, 1) if games else 0,
        })

    rows.sort(key=lambda r: -r[sort_key])
    return rows[:limit]


def recent_games(games, key: str, limit: int = 10) -> List[dict]:
    """Completed games a player took part in, newest first."""
    summaries = []
    for game in sorted(games, key=lambda g: g.created_at, reverse=True):
        if game.status != 'completed':
            continue
        team = next((t for t in game.teams if any(slot.key == key for slot in t.players)), None)
        if team is None and game.created_by != key:
            continue
        gold = game.medals.get('gold', {}).get('team')
        summaries.append({
            'id': game.id,
            'room': game.room_id,
            'game_type': display_name(game.game_type),
            'date': game.created_at,
            'winner': f'Team {gold}' if gold else None,
            'points': team.total_points if team else 0,
            'user_team': f'Team {team.letter}' if team else None,
            'status': game.status,
        })
        if len(summaries) >= limit:
            break
    return summaries
