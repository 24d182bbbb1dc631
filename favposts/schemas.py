# Request body models. Each endpoint that reads a JSON body declares one here
# and is wrapped with validate_body(), which rejects the request before the
# handler runs.
from functools import wraps
from typing import Optional

from flask import g, request, jsonify
from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, model_validator


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=1)
    confirm_password: Optional[str] = Field(default=None, alias='confirmPassword')
    firstname: Optional[str] = Field(default=None, min_length=1, max_length=80)
    lastname: Optional[str] = Field(default=None, min_length=1, max_length=80)

    def changed_fields(self):
        """Fields to persist: everything sent except the confirmation."""
        return self.model_dump(exclude_none=True, exclude={'confirm_password'})


class UpdateUserForm(BaseModel):
    # Presence of the current credentials is checked by the handler so the
    # user lookup happens first.
    email: Optional[str] = None
    password: Optional[str] = None
    update: Optional[UserUpdate] = None


class AddPostForm(BaseModel):
    """Either ``{postId}`` or the full ``{introductionId, bodyId, conclusionId}`` triple."""
    model_config = ConfigDict(populate_by_name=True)

    post_id: Optional[int] = Field(default=None, alias='postId', gt=0)
    introduction_id: Optional[int] = Field(default=None, alias='introductionId', gt=0)
    body_id: Optional[int] = Field(default=None, alias='bodyId', gt=0)
    conclusion_id: Optional[int] = Field(default=None, alias='conclusionId', gt=0)

    @model_validator(mode='after')
    def check_shape(self):
        parts = (self.introduction_id, self.body_id, self.conclusion_id)
        if self.post_id is not None:
            if any(p is not None for p in parts):
                raise ValueError('postId ne peut pas être combiné avec introductionId, bodyId ou conclusionId')
        elif any(p is None for p in parts):
            raise ValueError('postId ou introductionId, bodyId et conclusionId sont requis')
        return self


class SignupForm(BaseModel):
    firstname: str = Field(min_length=1, max_length=80)
    lastname: str = Field(min_length=1, max_length=80)
    email: EmailStr
    password: str = Field(min_length=1)


class LoginForm(BaseModel):
    email: str
    password: str


def format_validation_errors(exc):
    details = []
    for err in exc.errors():
        details.append({
            'field': '.'.join(str(part) for part in err['loc']),
            'message': err['msg'],
            'type': err['type'],
        })
    return details


def validate_body(schema):
    """Parses the JSON body with ``schema`` and exposes the result as ``g.body``."""
    def wrapper(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            data = request.get_json(silent=True)
            if data is None:
                data = {}
            try:
                g.body = schema.model_validate(data)
            except ValidationError as e:
                return jsonify({
                    'error': 'Corps de requête invalide',
                    'code': 'invalid_body',
                    'details': format_validation_errors(e),
                }), 400
            return f(*args, **kwargs)
        return decorated
    return wrapper
