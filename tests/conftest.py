"""
Shared pytest fixtures for pickleball organizer tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import random

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pickleball.models import Player, PlayerSlot, Team


def make_players(count, points=None):
    """Roster of `count` players named P1..Pn with 10, 20, ... points unless given."""
    points = points or [10 * (i + 1) for i in range(count)]
    return [
        Player(id=f'p{i + 1}', name=f'P{i + 1}', mobile=f'98765000{i + 1:02d}',
               individual_points=points[i])
        for i in range(count)
    ]


def make_teams(count):
    """`count` two-player teams lettered A, B, ... with distinct points."""
    teams = []
    for i in range(count):
        letter = chr(ord('A') + i)
        teams.append(Team(letter=letter, players=[
            PlayerSlot(source_player_id=f'{letter}1', name=f'{letter}1', points=i + 1),
            PlayerSlot(source_player_id=f'{letter}2', name=f'{letter}2', points=i + 1),
        ]))
    return teams


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def five_players():
    return make_players(5)


@pytest.fixture
def client():
    """Create a test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the app at an empty temporary data directory."""
    import app as app_module
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    return data_dir
