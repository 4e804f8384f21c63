# accounts/authentication.py
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.tokens import AccessToken

from lifeflow.exceptions import TokenRejected


def issue_token(user):
    """
    Signed access token (24h by default) carrying user_id, email and role
    """
    token = AccessToken.for_user(user)
    token['email'] = user.email
    token['role'] = user.role
    return str(token)


class BearerTokenAuthentication(JWTAuthentication):
    """
    ``Authorization: Bearer <token>``

    A missing header leaves the request anonymous (401 "Access token
    required" once a permission check runs); a token that fails
    verification is answered with 403.
    """

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except (InvalidToken, AuthenticationFailed):
            raise TokenRejected()
