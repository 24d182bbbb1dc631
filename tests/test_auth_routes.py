from favposts.extensions import db
from favposts.models import User

SIGNUP = {'firstname': 'Alice', 'lastname': 'Martin', 'email': 'a@x.com', 'password': 'p1'}


def test_signup_creates_user_with_hashed_password(app, client):
    response = client.post('/api/auth/signup', json=SIGNUP)

    assert response.status_code == 201
    with app.app_context():
        user = db.session.get(User, response.get_json()['id'])
        assert user.email == 'a@x.com'
        assert user.password != 'p1'
        assert user.check_password('p1')


def test_signup_duplicate_email(client, user_id):
    response = client.post('/api/auth/signup', json=SIGNUP)

    assert response.status_code == 409
    assert response.get_json()['code'] == 'email_taken'


def test_signup_rejects_missing_fields(client):
    response = client.post('/api/auth/signup', json={'email': 'a@x.com'})

    assert response.status_code == 400
    fields = {d['field'] for d in response.get_json()['details']}
    assert fields == {'firstname', 'lastname', 'password'}


def test_login_returns_usable_token(client, user_id):
    response = client.post('/api/auth/login', json={'email': 'a@x.com', 'password': 'p1'})

    assert response.status_code == 200
    token = response.get_json()['access_token']
    me = client.get('/api/me/', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json()['email'] == 'a@x.com'


def test_login_wrong_password(client, user_id):
    response = client.post('/api/auth/login', json={'email': 'a@x.com', 'password': 'nope'})

    assert response.status_code == 401
    assert response.get_json()['code'] == 'invalid_credentials'


def test_login_unknown_email(client):
    response = client.post('/api/auth/login', json={'email': 'ghost@x.com', 'password': 'p1'})

    assert response.status_code == 401


def test_unknown_api_path(client):
    response = client.get('/api/nothing-here')

    assert response.status_code == 404
    assert response.get_json() == {'error': 'Not found', 'code': 'not_found'}
