"""
Shared fixtures: an app bound to an in-memory SQLite database, a test client,
and helpers that create users and content and issue bearer tokens.
Data is created inside short-lived app contexts so every request made through
the client gets a fresh session.
"""

import pytest
from flask_jwt_extended import create_access_token

from favposts.app import create_app
from favposts.extensions import db
from favposts.models import User, Post
from favposts.initialize_content import initialize_content

PASSWORD = 'p1'


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'JWT_SECRET_KEY': 'test-jwt-secret-key-with-enough-length',
        'BCRYPT_LOG_ROUNDS': 4,
        'LOG_DIR': str(tmp_path / 'logs'),
    })
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email='a@x.com', password=PASSWORD, firstname='Alice', lastname='Martin'):
        with app.app_context():
            user = User(firstname=firstname, lastname=lastname, email=email)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user_id):
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {'Authorization': f'Bearer {token}'}
    return _auth_headers


@pytest.fixture
def user_id(make_user):
    return make_user()


@pytest.fixture
def headers(auth_headers, user_id):
    return auth_headers(user_id)


@pytest.fixture
def content(app):
    """Seeds two introductions, bodies and conclusions (ids 1 and 2 each)."""
    with app.app_context():
        initialize_content()


@pytest.fixture
def post_id(app, content):
    with app.app_context():
        post = Post(introduction_id=1, body_id=1, conclusion_id=1)
        db.session.add(post)
        db.session.commit()
        return post.id


@pytest.fixture
def fetch_user(app):
    def _fetch_user(user_id):
        with app.app_context():
            user = db.session.get(User, user_id)
            if user is None:
                return None
            return {
                'email': user.email,
                'firstname': user.firstname,
                'lastname': user.lastname,
                'password': user.password,
                'post_ids': [p.id for p in user.posts],
            }
    return _fetch_user
