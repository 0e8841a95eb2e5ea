"""
Player points ledger: {player key: record}, persisted by the web app.
"""
from pickleball.teams import parse_roster


def _record(ledger, key, name):
    record = ledger.setdefault(key, {
        'name': name,
        'individual_points': 0,
        'team_points': 0,
        'total_games': 0,
        'total_wins': 0,
        'streak': 0,
    })
    if name and not record.get('name'):
        record['name'] = name
    return record


def apply_match_awards(ledger, awards):
    """Add per-match win points, given as [(slot, points)]."""
    for slot, points in awards:
        _record(ledger, slot.key, slot.name)['individual_points'] += points
    return ledger


def apply_game_points(ledger, points):
    """Add the output of GameManager.assign_points and update each player's stats."""
    for key, award in points.items():
        record = _record(ledger, key, award['name'])
        record['individual_points'] += award['individual_points']
        record['team_points'] += award['team_points']
        record['total_games'] += 1
        if award['won']:
            record['total_wins'] += 1
            record['streak'] += 1
        else:
            record['streak'] = 0
    return ledger


def enrich_roster(players, ledger):
    """
    Build Player objects for team generation, taking individual points from
    the ledger when the roster entry does not carry them. Raises InvalidRoster
    for a malformed roster.
    """
    roster = parse_roster(players)
    for player in roster:
        record = ledger.get(player.key)
        if record and not player.individual_points:
            player.individual_points = record.get('individual_points', 0)
    return roster
