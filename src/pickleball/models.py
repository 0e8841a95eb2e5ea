import re
import uuid
from datetime import datetime

BYE_LETTER = 'BYE'
MEDALS = ('gold', 'silver', 'bronze')


def normalize_mobile(mobile):
    """Normalize a phone number to its last 10 digits (spaces, dashes, +, () and a leading 91 removed)."""
    if not mobile:
        return None
    cleaned = re.sub(r'[\s\-+()]', '', str(mobile))
    cleaned = re.sub(r'^91', '', cleaned)
    return cleaned[-10:] or None


def to_number(value):
    """Points as int or float. Empty values are 0; numeric strings are converted; anything else raises ValueError."""
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Invalid points value: {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise ValueError(f"Invalid points value: {value!r}")


def player_key(user_id=None, mobile=None, fallback=None):
    """Identity of a player across games: user id for members, mobile for informal players."""
    if user_id:
        return str(user_id)
    normalized = normalize_mobile(mobile)
    if normalized:
        return normalized
    return str(fallback) if fallback is not None else None


class Player:
    def __init__(self, id, name, mobile=None, individual_points=0, avatar_url=None, user_id=None):
        self.id = id
        self.name = name
        self.mobile = mobile
        self.individual_points = individual_points or 0
        self.avatar_url = avatar_url
        self.user_id = user_id

    @property
    def key(self):
        return player_key(self.user_id, self.mobile, self.id)

    @classmethod
    def from_dict(cls, data):
        user_id = data.get('userId') or data.get('user_id')
        mobile = data.get('mobile')
        player_id = data.get('id') or data.get('_id') or user_id or mobile or data.get('name')
        return cls(
            id=player_id,
            name=data.get('name') or 'Unknown Player',
            mobile=mobile,
            individual_points=to_number(data.get('individualPoints', data.get('individual_points'))),
            avatar_url=data.get('avatarUrl') or data.get('avatar_url'),
            user_id=user_id,
        )

    def __repr__(self):
        return f"Player(id={self.id}, name={self.name}, individual_points={self.individual_points})"


class PlayerSlot:
    """A player's place inside one team."""

    def __init__(self, source_player_id, name, mobile=None, points=0, avatar=None,
                 plays_twice=False, user_id=None):
        self.source_player_id = source_player_id
        self.name = name
        self.mobile = mobile
        self.points = points or 0
        self.avatar = avatar
        self.plays_twice = plays_twice
        self.user_id = user_id

    @classmethod
    def from_player(cls, player, plays_twice=False):
        return cls(
            source_player_id=player.id,
            name=player.name or 'Unknown Player',
            mobile=player.mobile,
            points=player.individual_points,
            avatar=player.avatar_url,
            plays_twice=plays_twice,
            user_id=player.user_id,
        )

    @property
    def key(self):
        return player_key(self.user_id, self.mobile, self.source_player_id or self.name)

    def to_payload(self):
        return {
            'userId': self.user_id,
            'name': self.name,
            'mobile': self.mobile,
            'playsTwice': self.plays_twice,
        }

    def to_dict(self):
        data = self.to_payload()
        data.update({
            'sourcePlayerId': self.source_player_id,
            'points': self.points,
            'avatar': self.avatar,
        })
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(
            source_player_id=data.get('sourcePlayerId') or data.get('userId') or data.get('mobile'),
            name=data.get('name') or 'Unknown Player',
            mobile=data.get('mobile'),
            points=to_number(data.get('points')),
            avatar=data.get('avatar'),
            plays_twice=bool(data.get('playsTwice', False)),
            user_id=data.get('userId'),
        )

    def __repr__(self):
        return f"PlayerSlot(name={self.name}, points={self.points}, plays_twice={self.plays_twice})"


class Team:
    def __init__(self, letter, players=None, total_points=None, color=None, wins=0, medal=None):
        self.letter = letter
        self.players = players if players else []
        if total_points is None:
            total_points = sum(slot.points for slot in self.players)
        self.total_points = total_points
        self.color = color
        self.wins = wins
        self.medal = medal

    @property
    def is_bye(self):
        return self.letter == BYE_LETTER

    def to_payload(self):
        return {
            'letter': self.letter,
            'players': [slot.to_payload() for slot in self.players],
            'totalPoints': self.total_points,
            'wins': 0,
        }

    def to_dict(self):
        return {
            'letter': self.letter,
            'players': [slot.to_dict() for slot in self.players],
            'totalPoints': self.total_points,
            'color': self.color,
            'wins': self.wins,
            'medal': self.medal,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            letter=data['letter'],
            players=[PlayerSlot.from_dict(p) for p in data.get('players', [])],
            total_points=to_number(data.get('totalPoints', data.get('points'))),
            color=data.get('color'),
            wins=data.get('wins', 0) or 0,
            medal=data.get('medal'),
        )

    def __repr__(self):
        return f"Team(letter={self.letter}, players={[p.name for p in self.players]}, total_points={self.total_points})"


class Match:
    def __init__(self, round_number, match_number, team_a, team_b, bracket_type=None,
                 is_bye=False, score_a=None, score_b=None, winner=None, status='pending'):
        self.round_number = round_number
        self.match_number = match_number
        self.team_a = team_a
        self.team_b = team_b
        self.bracket_type = bracket_type
        self.is_bye = is_bye
        self.score_a = score_a
        self.score_b = score_b
        self.winner = winner
        self.status = status

    @property
    def id(self):
        return f"R{self.round_number}-M{self.match_number}"

    @property
    def is_finished(self):
        return self.status == 'finished'

    @property
    def winning_team(self):
        if self.winner == 'A':
            return self.team_a
        if self.winner == 'B':
            return self.team_b
        return None

    @property
    def losing_team(self):
        if self.winner == 'A':
            return self.team_b
        if self.winner == 'B':
            return self.team_a
        return None

    @property
    def score_difference(self):
        return abs((self.score_a or 0) - (self.score_b or 0))

    def to_dict(self):
        return {
            'id': self.id,
            'roundNumber': self.round_number,
            'matchNumber': self.match_number,
            'teamA': _match_side(self.team_a),
            'teamB': _match_side(self.team_b),
            'scoreA': self.score_a,
            'scoreB': self.score_b,
            'winner': self.winner,
            'status': self.status,
            'bracketType': self.bracket_type,
            'isBye': self.is_bye,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            round_number=data['roundNumber'],
            match_number=data['matchNumber'],
            team_a=Team.from_dict(data['teamA']) if data.get('teamA') else None,
            team_b=Team.from_dict(data['teamB']) if data.get('teamB') else None,
            bracket_type=data.get('bracketType'),
            is_bye=bool(data.get('isBye', False)),
            score_a=data.get('scoreA'),
            score_b=data.get('scoreB'),
            winner=data.get('winner'),
            status=data.get('status', 'pending'),
        )

    def __repr__(self):
        a = self.team_a.letter if self.team_a else None
        b = self.team_b.letter if self.team_b else None
        return f"Match(id={self.id}, teams={a} vs {b}, bracket_type={self.bracket_type}, status={self.status})"


def _match_side(team):
    """Snapshot of a team as it appears in a match."""
    if team is None:
        return None
    return {
        'letter': team.letter,
        'players': [{'userId': p.user_id, 'name': p.name, 'mobile': p.mobile} for p in team.players],
        'points': team.total_points,
    }


def empty_medals():
    return {medal: {'team': None, 'players': []} for medal in MEDALS}


class Game:
    def __init__(self, room_id, game_type, teams, id=None, created_by=None, matches=None,
                 current_round=1, status='pending', medals=None, points_assigned=False,
                 created_at=None):
        self.id = id or uuid.uuid4().hex
        self.room_id = room_id
        self.game_type = game_type
        self.teams = teams
        self.created_by = created_by
        self.matches = matches if matches else []
        self.current_round = current_round
        self.status = status
        self.medals = medals if medals else empty_medals()
        self.points_assigned = points_assigned
        self.created_at = created_at or datetime.now().isoformat()

    @property
    def is_active(self):
        return self.status in ('pending', 'live')

    def team_by_letter(self, letter):
        return next((t for t in self.teams if t.letter == letter), None)

    def match_by_id(self, match_id):
        return next((m for m in self.matches if m.id == match_id), None)

    def round_matches(self, round_number, finished_only=False):
        return [
            m for m in self.matches
            if m.round_number == round_number and (m.is_finished or not finished_only)
        ]

    def to_dict(self):
        return {
            'id': self.id,
            'roomId': self.room_id,
            'type': self.game_type,
            'createdBy': self.created_by,
            'teams': [t.to_dict() for t in self.teams],
            'matches': [m.to_dict() for m in self.matches],
            'currentRound': self.current_round,
            'status': self.status,
            'medals': self.medals,
            'pointsAssigned': self.points_assigned,
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data.get('id'),
            room_id=data.get('roomId'),
            game_type=data.get('type'),
            teams=[Team.from_dict(t) for t in data.get('teams', [])],
            created_by=data.get('createdBy'),
            matches=[Match.from_dict(m) for m in data.get('matches', [])],
            current_round=data.get('currentRound', 1),
            status=data.get('status', 'pending'),
            medals=data.get('medals'),
            points_assigned=data.get('pointsAssigned', False),
            created_at=data.get('createdAt'),
        )

    def __repr__(self):
        return f"Game(id={self.id}, type={self.game_type}, teams={len(self.teams)}, status={self.status})"
