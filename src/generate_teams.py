import argparse
import os
import random
import sys

import yaml

from pickleball.formats import DEFAULT_FORMAT, VALID_FORMATS, display_name
from pickleball.models import Player
from pickleball.teams import TeamGenerationError, generate_teams


def load_roster(file_path):
    """
    Read players from a YAML roster. Either a list of players, or a mapping
    with a 'players' list. Each entry is a name or a dict of player fields.
    """
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file) or []
    if isinstance(data, dict):
        data = data.get('players', [])

    players = []
    for i, entry in enumerate(data):
        if isinstance(entry, str):
            entry = {'id': f'p{i + 1}', 'name': entry}
        players.append(Player.from_dict(entry))
    return players


def format_team(team):
    names = []
    for slot in team.players:
        names.append(f"{slot.name} (x2)" if slot.plays_twice else slot.name)
    return f"Team {team.letter} [{team.total_points} pts]: {', '.join(names)}"


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Shuffle a roster into pickleball teams.')
    parser.add_argument('roster', nargs='?', default=os.path.join(base_dir, 'data', 'roster.yaml'),
                        help='YAML roster file')
    parser.add_argument('--format', dest='game_format', default=DEFAULT_FORMAT, choices=VALID_FORMATS)
    parser.add_argument('--seed', type=int, default=None, help='seed for a repeatable shuffle')
    args = parser.parse_args(argv)

    players = load_roster(args.roster)
    rng = random.Random(args.seed) if args.seed is not None else None

    try:
        teams = generate_teams(players, args.game_format, rng)
    except TeamGenerationError as e:
        print(f"{e.title}: {e}", file=sys.stderr)
        return 1

    print(f"# {display_name(args.game_format)} - {len(players)} players, {len(teams)} teams")
    for team in teams:
        print(format_team(team))
    return 0


if __name__ == '__main__':
    sys.exit(main())
