from signull import db
import random
import time


CONSONANTS = 'BCDFGHJKMNPQRSTVWXYZ'
VOWELS = 'AEUY'
DIGITS = '23456789'


def _random_code():
    return (
        random.choice(CONSONANTS) + random.choice(VOWELS)
        + random.choice(CONSONANTS) + random.choice(VOWELS)
        + random.choice(DIGITS) + random.choice(DIGITS)
    )


def generate_room_code():
    """Generate a unique, pronounceable room code like ``BAKU42``."""
    while True:
        code = _random_code()
        if not Room.query.filter_by(code=code).first():
            return code


class Room(db.Model):
    """One row per game room. `state` holds the whole aggregate snapshot.

    `version` is SQLAlchemy's optimistic concurrency column: a commit whose
    UPDATE finds a different version raises StaleDataError, which the
    repository turns into a retry.
    """
    __tablename__ = 'room'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False, index=True)
    state = db.Column(db.JSON, nullable=False)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)
    updated_at = db.Column(db.Float, nullable=False, default=time.time)

    __mapper_args__ = {'version_id_col': version}

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'version': self.version,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
