from flask import Blueprint, jsonify, g, current_app
from favposts.extensions import db
from favposts.models import User, Post, CONTENT_MODELS
from favposts.errors import ValidationFailed, InvalidCredentials, NotFound, Conflict, internal_error, error_response
from favposts.schemas import UpdateUserForm, UserUpdate, AddPostForm, validate_body
from favposts.routes.auth_routes import token_required
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, load_only

user_bp = Blueprint('user_api', __name__)

USER_NOT_FOUND = 'Utilisateur introuvable'
POST_NOT_FOUND = 'Post introuvable'


def _get_current_user():
    user = db.session.get(User, g.user_id)
    if not user:
        raise NotFound(USER_NOT_FOUND, 'user_not_found')
    return user


def _get_post(post_id):
    post = db.session.get(Post, post_id)
    if not post:
        raise NotFound(POST_NOT_FOUND, 'post_not_found')
    return post


# --- Profile ---

@user_bp.route('/', methods=['GET'], strict_slashes=False)
@token_required
def get_user():
    try:
        user = db.session.execute(
            db.select(User)
            .options(load_only(User.firstname, User.lastname, User.email))
            .filter_by(id=g.user_id)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Error fetching user {g.user_id}: {e}", exc_info=True)
        return error_response(str(e), 'lookup_failed', 400)

    if not user:
        raise NotFound(USER_NOT_FOUND, 'user_not_found')
    return jsonify(user.to_profile()), 200


@user_bp.route('/', methods=['PUT'], strict_slashes=False)
@token_required
@validate_body(UpdateUserForm)
def update_user():
    user = _get_current_user()
    form = g.body

    # Current credentials are required to change anything
    if not (form.email and form.password):
        raise ValidationFailed('Vous devez renseigner votre email et votre mot de passe actuels', 'credentials_required')

    # One message for both cases so the client cannot tell which part was wrong
    if not (user.email == form.email and user.check_password(form.password)):
        raise InvalidCredentials('Ancien mot de passe et/ou email invalide')

    update = form.update or UserUpdate()
    messages = []

    if update.email:
        if update.email == form.email:
            raise ValidationFailed('Votre nouvel email est identique à votre ancien email.', 'email_unchanged')
        taken = User.query.filter(User.email == update.email, User.id != user.id).first()
        if taken:
            raise Conflict(f"{update.email} est déjà utilisé", 'email_taken')
        messages.append(f"Nouvel email : {update.email}.")

    if update.password:
        if update.password != update.confirm_password:
            raise ValidationFailed('Le nouveau mot de passe et sa confirmation ne sont pas identiques.', 'password_mismatch')
        messages.append('Nouveau mot de passe.')

    try:
        user.apply_update(update.changed_fields())
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Update error for user {user.id}: {e}", exc_info=True)
        return internal_error()

    messages.append('Compte utilisateur mis à jour')
    current_app.logger.info(f"User {user.id} updated fields {sorted(update.changed_fields())}")
    return jsonify({
        'msg': ' '.join(messages),
        'user': user.to_profile(),
    }), 200


@user_bp.route('/', methods=['DELETE'], strict_slashes=False)
@token_required
def delete_user():
    # No existence check: deleting an unknown id is a no-op.
    try:
        user = db.session.get(User, g.user_id)
        if user:
            db.session.delete(user)
            db.session.commit()
            current_app.logger.info(f"User {g.user_id} deleted")
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Delete error for user {g.user_id}: {e}", exc_info=True)
        return internal_error()

    return jsonify('User Deleted'), 200


# --- Favorites ---

@user_bp.route('/posts', methods=['GET'])
@token_required
def get_all_user_posts():
    user = db.session.execute(
        db.select(User)
        .options(
            load_only(User.id, User.firstname, User.lastname),
            selectinload(User.posts),
        )
        .filter_by(id=g.user_id)
    ).scalar_one_or_none()
    if not user:
        raise NotFound(USER_NOT_FOUND, 'user_not_found')

    return jsonify({
        'id': user.id,
        'firstname': user.firstname,
        'lastname': user.lastname,
        'posts': [post.to_dict() for post in user.posts],
    }), 200


@user_bp.route('/posts', methods=['POST'])
@token_required
@validate_body(AddPostForm)
def add_post():
    form = g.body
    message = ''
    try:
        user = _get_current_user()

        if form.post_id is not None:
            post = _get_post(form.post_id)
        else:
            parts = {
                'introduction': form.introduction_id,
                'body': form.body_id,
                'conclusion': form.conclusion_id,
            }
            for name, part_id in parts.items():
                if not db.session.get(CONTENT_MODELS[name], part_id):
                    raise NotFound(f"Contenu introuvable ({name} {part_id})", 'content_not_found')

            post, created = Post.find_or_create(form.introduction_id, form.body_id, form.conclusion_id)
            if created:
                message += (f"Création du post {post.id} "
                            f"[i:{post.introduction_id},b:{post.body_id},c:{post.conclusion_id}]. ")

        # find-or-create and the association are committed together
        added = user.add_post(post)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error adding post to favorites of user {g.user_id}: {e}", exc_info=True)
        return internal_error()

    if not added:
        return jsonify({
            'msg': f"L'utilisateur a déjà enregistré le post {post.id}. Ajout impossible",
            'postId': post.id,
        }), 200

    current_app.logger.info(f"User {user.id} added post {post.id} to favorites")
    return jsonify({
        'msg': f"{message}Ajout du post {post.id} en favoris",
        'postId': post.id,
    }), 201


@user_bp.route('/posts/<int:post_id>', methods=['DELETE'])
@token_required
def delete_post(post_id):
    try:
        user = _get_current_user()
        post = _get_post(post_id)

        removed = user.remove_post(post)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Error removing post {post_id} from favorites of user {g.user_id}: {e}", exc_info=True)
        return internal_error()

    if not removed:
        return jsonify({
            'msg': "L'utilisateur n'a pas enregistré ce post. Suppression impossible",
            'postId': post_id,
        }), 200

    current_app.logger.info(f"User {user.id} removed post {post_id} from favorites")
    return jsonify({'msg': f"Suppression post {post_id} OK", 'postId': post_id}), 200
