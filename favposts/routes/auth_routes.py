from flask import Blueprint, jsonify, current_app, g
from favposts.extensions import db
from favposts.models import User
from favposts.errors import Conflict, InvalidCredentials, internal_error
from favposts.schemas import SignupForm, LoginForm, validate_body
from flask_jwt_extended import create_access_token, verify_jwt_in_request, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.exc import SQLAlchemyError
from functools import wraps

auth_bp = Blueprint('auth_api', __name__)


def token_required(fn):
    """Requires a valid bearer token and stores its subject in ``g.user_id``."""
    @wraps(fn)
    def decorated(*args, **kwargs):
        try:
            verify_jwt_in_request()
            g.user_id = int(get_jwt_identity())
        except (JWTExtendedException, PyJWTError, TypeError, ValueError) as e:
            current_app.logger.warning(f"JWT verification failed: {e}")
            return jsonify({
                'error': "Jeton d'authentification absent ou invalide",
                'code': 'unauthorized',
            }), 401
        return fn(*args, **kwargs)
    return decorated


def issue_token(user):
    return create_access_token(identity=str(user.id))


# --- Signup / login ---

@auth_bp.route('/signup', methods=['POST'])
@validate_body(SignupForm)
def signup():
    form = g.body
    if User.query.filter_by(email=form.email).first():
        raise Conflict(f"{form.email} est déjà utilisé", 'email_taken')

    try:
        new_user = User(firstname=form.firstname, lastname=form.lastname, email=form.email)
        new_user.set_password(form.password)
        db.session.add(new_user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Signup error: {e}", exc_info=True)
        return internal_error()

    current_app.logger.info(f"User {new_user.id} signed up")
    return jsonify({'msg': 'Compte utilisateur créé', 'id': new_user.id}), 201


@auth_bp.route('/login', methods=['POST'])
@validate_body(LoginForm)
def login():
    form = g.body
    user = User.query.filter_by(email=form.email).first()
    if not user or not user.check_password(form.password):
        raise InvalidCredentials('Mot de passe et/ou email invalide')

    return jsonify({'msg': 'Connexion réussie', 'access_token': issue_token(user)}), 200
