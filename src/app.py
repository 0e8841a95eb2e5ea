"""
Flask web application for the pickleball match organizer.
"""
import os
import yaml
from flask import Flask, request, jsonify
from filelock import FileLock
from pickleball.game import GameManager, GameError, GameValidationError, ActiveGameExists, MatchNotFound, get_default_settings, merge_settings
from pickleball.ledger import apply_game_points, apply_match_awards, enrich_roster
from pickleball.models import Game
from pickleball.standings import leaderboard, matches_by_round, recent_games, team_standings, visible_matches
from pickleball.teams import TeamGenerationError, build_game_request, generate_teams

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('PICKLEBALL_DATA_DIR', os.path.join(BASE_DIR, 'data'))

GAMES_FILE = 'games.yaml'
PLAYERS_FILE = 'players.yaml'
SETTINGS_FILE = 'settings.yaml'


def _file_path(filename: str) -> str:
    """Return full path to a data file."""
    return os.path.join(DATA_DIR, filename)


def _data_lock() -> FileLock:
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(_file_path('.lock'), timeout=10)


def _load_yaml(filename: str):
    path = _file_path(filename)
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        app.logger.warning(f'Failed to parse {path}: {e}')
        return None


def _save_yaml(filename: str, data):
    os.makedirs(DATA_DIR, exist_ok=True)
    with open(_file_path(filename), 'w', encoding='utf-8') as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def load_settings() -> dict:
    """Load scoring settings from YAML file, merging with defaults."""
    data = _load_yaml(SETTINGS_FILE)
    if not isinstance(data, dict):
        data = {}
    return merge_settings(get_default_settings(), data)


def load_games() -> list:
    """Load all games."""
    data = _load_yaml(GAMES_FILE)
    if not data:
        return []
    return [Game.from_dict(g) for g in data.get('games', [])]


def save_games(games: list):
    _save_yaml(GAMES_FILE, {'games': [g.to_dict() for g in games]})


def load_ledger() -> dict:
    """Load the player points ledger."""
    data = _load_yaml(PLAYERS_FILE)
    return (data.get('players') or {}) if data else {}


def save_ledger(ledger: dict):
    _save_yaml(PLAYERS_FILE, {'players': ledger})


def _find_game(games, game_id):
    return next((g for g in games if g.id == game_id), None)


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _error(message, status=400, **extra):
    body = {'success': False, 'message': message}
    body.update(extra)
    return jsonify(body), status


def _game_response(game):
    """Game as JSON, with the display views the results screens need."""
    data = game.to_dict()
    data['visibleMatches'] = [m.to_dict() for m in visible_matches(game.matches)]
    data['rounds'] = {
        str(round_number): [m.to_dict() for m in round_matches]
        for round_number, round_matches in matches_by_round(game.matches).items()
    }
    data['standings'] = team_standings(game)
    return data


@app.errorhandler(GameError)
def handle_game_error(e):
    if isinstance(e, ActiveGameExists):
        return _error(str(e), 400, existingGameId=e.game_id)
    if isinstance(e, MatchNotFound):
        return _error(str(e), 404)
    return _error(str(e), 400)


@app.route('/api/teams/generate', methods=['POST'])
def api_generate_teams():
    """Shuffle a roster into teams. Call again to reshuffle."""
    data = _json_body()
    players = data.get('players', [])
    game_format = data.get('gameFormat')
    try:
        roster = enrich_roster(players, load_ledger())
        teams = generate_teams(roster, game_format)
    except TeamGenerationError as e:
        app.logger.info(f'Team generation failed: {e}')
        return _error(str(e), 400, title=e.title)
    return jsonify({
        'success': True,
        'teams': [t.to_dict() for t in teams],
        'gameRequest': build_game_request(data.get('roomId'), game_format, teams),
    })


@app.route('/api/games', methods=['POST'])
def api_create_game():
    """Create a game from accepted teams."""
    data = _json_body()
    manager = GameManager(load_settings())
    with _data_lock():
        games = load_games()
        game = manager.create_game(data, created_by=data.get('createdBy'), active_games=games)
        games.append(game)
        save_games(games)
    app.logger.info(f'Game {game.id} created in room {game.room_id}')
    return jsonify({'success': True, 'message': 'Game created successfully',
                    'game': _game_response(game)}), 201


@app.route('/api/games/<game_id>', methods=['GET'])
def api_get_game(game_id):
    game = _find_game(load_games(), game_id)
    if game is None:
        return _error('Game not found', 404)
    return jsonify({'success': True, 'game': _game_response(game)})


@app.route('/api/games/<game_id>/matches/<match_id>/result', methods=['POST'])
def api_submit_result(game_id, match_id):
    """Record a match score and advance the game."""
    data = _json_body()
    manager = GameManager(load_settings())
    with _data_lock():
        games = load_games()
        game = _find_game(games, game_id)
        if game is None:
            return _error('Game not found', 404)
        outcome = manager.submit_match_result(game, match_id, data.get('scoreA'), data.get('scoreB'))
        ledger = apply_match_awards(load_ledger(), outcome.awards)
        save_games(games)
        save_ledger(ledger)
    return jsonify({
        'success': True,
        'message': 'Match result submitted',
        'match': outcome.match.to_dict(),
        'game': _game_response(game),
        'allRoundMatchesFinished': outcome.round_finished,
        'nextRoundCreated': outcome.next_round_created,
        'newMatches': [m.to_dict() for m in outcome.new_matches],
    })


@app.route('/api/games/<game_id>/winners', methods=['POST'])
def api_calculate_winners(game_id):
    manager = GameManager(load_settings())
    with _data_lock():
        games = load_games()
        game = _find_game(games, game_id)
        if game is None:
            return _error('Game not found', 404)
        manager.calculate_winners(game)
        save_games(games)
    return jsonify({'success': True, 'message': 'Winners calculated successfully',
                    'game': _game_response(game)})


@app.route('/api/games/<game_id>/points', methods=['POST'])
def api_assign_points(game_id):
    manager = GameManager(load_settings())
    with _data_lock():
        games = load_games()
        game = _find_game(games, game_id)
        if game is None:
            return _error('Game not found', 404)
        if game.points_assigned:
            return jsonify({'success': True, 'message': 'Points already assigned'})
        points = manager.assign_points(game)
        ledger = apply_game_points(load_ledger(), points)
        save_games(games)
        save_ledger(ledger)
    return jsonify({'success': True, 'message': 'Points assigned successfully', 'points': points})


@app.route('/api/rooms/<room_id>/active-game', methods=['GET'])
def api_active_game(room_id):
    active = [g for g in load_games() if g.room_id == room_id and g.is_active]
    if not active:
        return jsonify({'success': True, 'hasActiveGame': False, 'game': None})
    game = max(active, key=lambda g: g.created_at)
    return jsonify({'success': True, 'hasActiveGame': True, 'game': _game_response(game)})


@app.route('/api/players/<player_key>/recent-games', methods=['GET'])
def api_recent_games(player_key):
    try:
        limit = int(request.args.get('limit', 10))
    except ValueError:
        raise GameValidationError('limit must be a number')
    games = recent_games(load_games(), player_key, limit)
    return jsonify({'success': True, 'count': len(games), 'games': games})


@app.route('/api/top-scores', methods=['GET'])
def api_top_scores():
    sort_by = request.args.get('sortBy', 'points')
    try:
        limit = int(request.args.get('limit', 50))
    except ValueError:
        raise GameValidationError('limit must be a number')
    return jsonify({'success': True, 'sortBy': sort_by,
                    'players': leaderboard(load_ledger(), sort_by, limit)})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
