"""
Unit tests for random team generation.
"""
import pytest
import random
import sys
import os
from collections import Counter

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from conftest import make_players
from pickleball.teams import (
    TEAM_COLORS, InsufficientPlayers, InvalidPlayerCount, InvalidRoster, TeamGenerationError,
    build_game_request, generate_teams, parse_roster, shuffle_players, team_color, team_letter,
)


class TestHelpers:
    """Tests for letters, colors and shuffling."""

    def test_team_letters(self):
        assert [team_letter(i) for i in range(3)] == ['A', 'B', 'C']
        assert team_letter(25) == 'Z'
        assert team_letter(26) == 'AA'
        assert team_letter(27) == 'AB'

    def test_team_colors_rotate(self):
        """Colors cycle through the 8-entry palette."""
        assert len(TEAM_COLORS) == 8
        assert team_color(0) == team_color(8)
        assert team_color(1) != team_color(0)

    def test_shuffle_returns_permutation(self, rng):
        """Shuffling keeps every player and leaves the input untouched."""
        players = make_players(6)
        shuffled = shuffle_players(players, rng)
        assert sorted(p.id for p in shuffled) == sorted(p.id for p in players)
        assert [p.id for p in players] == ['p1', 'p2', 'p3', 'p4', 'p5', 'p6']

    def test_shuffle_is_seedable(self):
        players = make_players(8)
        first = shuffle_players(players, random.Random(7))
        second = shuffle_players(players, random.Random(7))
        assert [p.id for p in first] == [p.id for p in second]


class TestFlexibleFormats:
    """Teams of two for pickle, round-robin and quick-knockout."""

    @pytest.mark.parametrize('game_format', ['pickle', 'round-robin', 'quick-knockout'])
    def test_even_roster(self, game_format, rng):
        """6 players make 3 teams of 2 with nobody playing twice."""
        teams = generate_teams(make_players(6), game_format, rng)
        assert [t.letter for t in teams] == ['A', 'B', 'C']
        assert all(len(t.players) == 2 for t in teams)
        assert not any(slot.plays_twice for t in teams for slot in t.players)
        ids = [slot.source_player_id for t in teams for slot in t.players]
        assert sorted(ids) == ['p1', 'p2', 'p3', 'p4', 'p5', 'p6']

    def test_odd_roster_duplicates_one_player(self, five_players, rng):
        """5 players make 3 teams; one assigned player also fills the last team."""
        teams = generate_teams(five_players, 'pickle', rng)
        assert len(teams) == 3
        assert all(len(t.players) == 2 for t in teams)

        ids = Counter(slot.source_player_id for t in teams for slot in t.players)
        assert set(ids) == {'p1', 'p2', 'p3', 'p4', 'p5'}
        duplicated = [pid for pid, count in ids.items() if count == 2]
        assert len(duplicated) == 1

        twice = [slot for t in teams for slot in t.players if slot.plays_twice]
        assert len(twice) == 2
        assert {slot.source_player_id for slot in twice} == set(duplicated)

    def test_odd_roster_duplicate_sits_on_two_teams(self, five_players, rng):
        """The duplicated player's slots belong to two different teams."""
        teams = generate_teams(five_players, 'pickle', rng)
        letters = [t.letter for t in teams for slot in t.players if slot.plays_twice]
        assert len(set(letters)) == 2
        # the last team holds the leftover player plus the duplicate
        assert teams[-1].players[1].plays_twice
        assert not teams[-1].players[0].plays_twice

    def test_odd_roster_points(self, five_players, rng):
        """Team points count the duplicated player once per team."""
        teams = generate_teams(five_players, 'pickle', rng)
        duplicate = next(slot for slot in teams[-1].players if slot.plays_twice)
        assert sum(t.total_points for t in teams) == 150 + duplicate.points
        for team in teams:
            assert team.total_points == sum(slot.points for slot in team.players)

    def test_three_players(self, rng):
        """3 players make 2 teams, one player on both."""
        teams = generate_teams(make_players(3), 'round-robin', rng)
        assert len(teams) == 2
        assert sum(slot.plays_twice for t in teams for slot in t.players) == 2

    def test_two_players_make_one_team(self, rng):
        teams = generate_teams(make_players(2), 'pickle', rng)
        assert len(teams) == 1
        assert len(teams[0].players) == 2

    def test_default_format_is_pickle(self, rng):
        teams = generate_teams(make_players(4), None, rng)
        assert len(teams) == 2

    def test_accepts_player_dicts(self, rng):
        players = [{'id': f'p{i}', 'name': f'P{i}', 'individualPoints': i} for i in range(4)]
        teams = generate_teams(players, 'pickle', rng)
        assert sum(t.total_points for t in teams) == 0 + 1 + 2 + 3

    def test_colors_assigned_in_order(self, rng):
        teams = generate_teams(make_players(6), 'pickle', rng)
        assert [t.color for t in teams] == TEAM_COLORS[:3]

    def test_reshuffle_uses_same_roster(self):
        """Two generations from the same roster cover the same players."""
        players = make_players(7)
        first = generate_teams(players, 'pickle', random.Random(1))
        second = generate_teams(players, 'pickle', random.Random(2))
        ids = lambda teams: {slot.source_player_id for t in teams for slot in t.players}
        assert ids(first) == ids(second) == {p.id for p in players}


class TestFixedFormats:
    """one-vs-one and two-vs-two need exact roster sizes."""

    def test_one_vs_one(self, rng):
        teams = generate_teams(make_players(2), 'one-vs-one', rng)
        assert len(teams) == 2
        assert all(len(t.players) == 1 for t in teams)

    def test_two_vs_two(self, rng):
        teams = generate_teams(make_players(4), 'two-vs-two', rng)
        assert len(teams) == 2
        assert all(len(t.players) == 2 for t in teams)
        assert not any(slot.plays_twice for t in teams for slot in t.players)

    def test_one_vs_one_rejects_three(self, rng):
        with pytest.raises(InvalidPlayerCount) as excinfo:
            generate_teams(make_players(3), 'one-vs-one', rng)
        assert str(excinfo.value) == '1 vs 1 format requires exactly 2 players.'
        assert excinfo.value.title == 'Invalid Player Count'

    def test_two_vs_two_rejects_five(self, rng):
        with pytest.raises(InvalidPlayerCount) as excinfo:
            generate_teams(make_players(5), 'two-vs-two', rng)
        assert str(excinfo.value) == '2 vs 2 format requires exactly 4 players.'

    @pytest.mark.parametrize('game_format,num_players', [
        ('one-vs-one', 3),
        ('one-vs-one', 4),
        ('one-vs-one', 5),
        ('two-vs-two', 2),
        ('two-vs-two', 3),
        ('two-vs-two', 5),
        ('two-vs-two', 6),
    ])
    def test_wrong_roster_size_rejected(self, game_format, num_players, rng):
        with pytest.raises(InvalidPlayerCount) as excinfo:
            generate_teams(make_players(num_players), game_format, rng)
        assert excinfo.value.num_players == num_players
        assert excinfo.value.game_format == game_format


class TestTeamInvariants:
    """Structural properties across roster sizes and shuffles."""

    @pytest.mark.parametrize('seed', [0, 1, 42, 2024])
    @pytest.mark.parametrize('num_players', range(2, 21))
    def test_flexible_roster(self, num_players, seed):
        players = make_players(num_players)
        teams = generate_teams(players, 'pickle', random.Random(seed))
        odd = num_players % 2 == 1

        assert len(teams) == num_players // 2 + (1 if odd else 0)
        assert all(len(t.players) == 2 for t in teams)
        assert len({t.letter for t in teams}) == len(teams)

        slots = [slot for t in teams for slot in t.players]
        assert len(slots) == num_players + (1 if odd else 0)
        assert {slot.source_player_id for slot in slots} == {p.id for p in players}

        twice = [slot for slot in slots if slot.plays_twice]
        if odd:
            assert len(twice) == 2
            assert len({slot.source_player_id for slot in twice}) == 1
            duplicate_points = twice[0].points
        else:
            assert twice == []
            duplicate_points = 0

        for team in teams:
            assert team.total_points == sum(slot.points for slot in team.players)
        assert sum(t.total_points for t in teams) == sum(p.individual_points for p in players) + duplicate_points

    @pytest.mark.parametrize('seed', [0, 1, 42])
    @pytest.mark.parametrize('game_format,num_players,per_team', [
        ('one-vs-one', 2, 1),
        ('two-vs-two', 4, 2),
    ])
    def test_fixed_roster(self, game_format, num_players, per_team, seed):
        players = make_players(num_players)
        teams = generate_teams(players, game_format, random.Random(seed))
        assert len(teams) == 2
        assert all(len(t.players) == per_team for t in teams)
        slots = [slot for t in teams for slot in t.players]
        assert sorted(slot.source_player_id for slot in slots) == sorted(p.id for p in players)
        assert not any(slot.plays_twice for slot in slots)
        assert sum(t.total_points for t in teams) == sum(p.individual_points for p in players)


class TestParseRoster:
    """Tests for roster validation."""

    def test_mixed_players_and_dicts(self):
        players = make_players(1) + [{'id': 'x', 'name': 'X', 'individualPoints': '3'}]
        roster = parse_roster(players)
        assert [p.id for p in roster] == ['p1', 'x']
        assert roster[1].individual_points == 3

    def test_entries_must_be_players(self):
        with pytest.raises(InvalidRoster) as excinfo:
            parse_roster(['a', 'b'])
        assert excinfo.value.title == 'Invalid Player Data'

    def test_roster_must_be_a_list(self):
        with pytest.raises(InvalidRoster):
            parse_roster({'name': 'Ann'})

    def test_points_must_be_numeric(self):
        with pytest.raises(InvalidRoster):
            generate_teams([{'name': 'a', 'individualPoints': 'lots'}, {'name': 'b'}])

    def test_string_points_are_summed(self, rng):
        """Numeric strings count toward team points."""
        teams = generate_teams([{'name': 'a', 'individualPoints': '5'}, {'name': 'b'}], 'pickle', rng)
        assert teams[0].total_points == 5


class TestInsufficientPlayers:
    """Rosters below two players."""

    @pytest.mark.parametrize('count', [0, 1])
    def test_rejects_small_rosters(self, count, rng):
        with pytest.raises(InsufficientPlayers) as excinfo:
            generate_teams(make_players(count), 'pickle', rng)
        assert excinfo.value.title == 'Not Enough Players'
        assert isinstance(excinfo.value, TeamGenerationError)

    def test_insufficient_checked_before_format(self, rng):
        """A single player gets the not-enough-players error even for fixed formats."""
        with pytest.raises(InsufficientPlayers):
            generate_teams(make_players(1), 'two-vs-two', rng)

    def test_none_roster(self):
        with pytest.raises(InsufficientPlayers):
            generate_teams(None)


class TestBuildGameRequest:
    """Tests for the game creation payload."""

    def test_payload(self, rng):
        teams = generate_teams(make_players(4), 'quick-knockout', rng)
        request = build_game_request('room1', 'quick-knockout', teams)
        assert request['roomId'] == 'room1'
        assert request['gameType'] == 'quick-knockout'
        assert [t['letter'] for t in request['teams']] == ['A', 'B']
        assert all(t['wins'] == 0 for t in request['teams'])
        assert set(request['teams'][0]['players'][0]) == {'userId', 'name', 'mobile', 'playsTwice'}

    def test_default_game_type(self, rng):
        teams = generate_teams(make_players(2), None, rng)
        assert build_game_request('room1', None, teams)['gameType'] == 'pickle'
