from favposts.extensions import db, bcrypt
from sqlalchemy.exc import IntegrityError
import datetime


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


# Favorites join table (user <-> post), no extra attributes
user_has_post = db.Table('user_has_post',
    db.Column('user_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    db.Column('post_id', db.Integer, db.ForeignKey('post.id', ondelete='CASCADE'), primary_key=True)
)


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    firstname = db.Column(db.String(80))
    lastname = db.Column(db.String(80))
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)
    posts = db.relationship('Post', secondary=user_has_post, lazy='select',
                            order_by='Post.id',
                            backref=db.backref('users', lazy=True))

    # Profile fields a user may change through PUT /api/me
    UPDATABLE_FIELDS = ('firstname', 'lastname', 'email', 'password')

    def set_password(self, raw_password):
        self.password = bcrypt.generate_password_hash(raw_password).decode('utf-8')

    def check_password(self, raw_password):
        if not self.password or not raw_password:
            return False
        return bcrypt.check_password_hash(self.password, raw_password)

    def apply_update(self, fields):
        """Assigns every known profile field present in ``fields`` in one pass."""
        for name, value in fields.items():
            if name not in self.UPDATABLE_FIELDS:
                continue
            if name == 'password':
                self.set_password(value)
            else:
                setattr(self, name, value)

    def add_post(self, post):
        """Returns False when the post is already in the user's favorites."""
        if post in self.posts:
            return False
        self.posts.append(post)
        return True

    def remove_post(self, post):
        """Returns False when the post was not in the user's favorites."""
        if post not in self.posts:
            return False
        self.posts.remove(post)
        return True

    def to_profile(self):
        return {
            'firstname': self.firstname,
            'lastname': self.lastname,
            'email': self.email,
        }

    def __repr__(self):
        return f'<User {self.id} {self.email}>'


class ContentMixin:
    """Shared shape of the three text parts a post is composed of."""
    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {'id': self.id, 'content': self.content}


class Introduction(ContentMixin, db.Model):
    __tablename__ = 'introduction'


class Body(ContentMixin, db.Model):
    __tablename__ = 'body'


class Conclusion(ContentMixin, db.Model):
    __tablename__ = 'conclusion'


class Post(db.Model):
    __tablename__ = 'post'
    id = db.Column(db.Integer, primary_key=True)
    introduction_id = db.Column(db.Integer, db.ForeignKey('introduction.id'), nullable=False)
    body_id = db.Column(db.Integer, db.ForeignKey('body.id'), nullable=False)
    conclusion_id = db.Column(db.Integer, db.ForeignKey('conclusion.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)
    introduction = db.relationship('Introduction', lazy='joined')
    body = db.relationship('Body', lazy='joined')
    conclusion = db.relationship('Conclusion', lazy='joined')
    __table_args__ = (
        db.UniqueConstraint('introduction_id', 'body_id', 'conclusion_id', name='_post_parts_uc'),
    )

    @classmethod
    def find_by_parts(cls, introduction_id, body_id, conclusion_id):
        return cls.query.filter_by(
            introduction_id=introduction_id,
            body_id=body_id,
            conclusion_id=conclusion_id,
        ).first()

    @classmethod
    def find_or_create(cls, introduction_id, body_id, conclusion_id):
        """Returns ``(post, created)``; the new row is flushed, not committed.

        Must run before anything else is staged in the session: a concurrent
        insert of the same triple rolls the session back and the row that won
        is returned instead.
        """
        post = cls.find_by_parts(introduction_id, body_id, conclusion_id)
        if post:
            return post, False

        post = cls(introduction_id=introduction_id, body_id=body_id, conclusion_id=conclusion_id)
        db.session.add(post)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            existing = cls.find_by_parts(introduction_id, body_id, conclusion_id)
            if existing is None:
                raise
            return existing, False
        return post, True

    def to_dict(self):
        return {
            'id': self.id,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            'introduction': self.introduction.to_dict() if self.introduction else None,
            'body': self.body.to_dict() if self.body else None,
            'conclusion': self.conclusion.to_dict() if self.conclusion else None,
        }

    def __repr__(self):
        return f'<Post {self.id} [i:{self.introduction_id},b:{self.body_id},c:{self.conclusion_id}]>'


CONTENT_MODELS = {
    'introduction': Introduction,
    'body': Body,
    'conclusion': Conclusion,
}
