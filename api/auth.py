import logging

from rest_framework import exceptions
from rest_framework.authentication import TokenAuthentication
from rest_framework.authtoken.models import Token
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = 'access_token'
REFRESH_COOKIE = 'refresh_token'
TOKEN_COOKIE = 'auth_token'


class CookieTokenAuthentication(TokenAuthentication):
    """Staff authentication for the admin endpoints.

    Order: JWT access cookie, then the `Authorization: Token ...` header,
    then the DRF token cookie. Public endpoints never need credentials.
    """
    def authenticate(self, request):
        access = request.COOKIES.get(ACCESS_COOKIE)
        if access:
            jwt_auth = JWTAuthentication()
            try:
                validated = jwt_auth.get_validated_token(access)
                return (jwt_auth.get_user(validated), validated)
            except (InvalidToken, TokenError, exceptions.AuthenticationFailed):
                # expired access cookie; the refresh endpoint issues a new one
                logger.debug('Ignoring invalid access_token cookie')

        header_result = super().authenticate(request)
        if header_result is not None:
            return header_result

        key = request.COOKIES.get(TOKEN_COOKIE)
        if not key:
            return None
        try:
            token = Token.objects.select_related('user').get(key=key)
        except Token.DoesNotExist:
            raise exceptions.AuthenticationFailed('Invalid token in cookie')
        if not token.user.is_active:
            raise exceptions.AuthenticationFailed('User inactive or deleted.')
        return (token.user, token)
