"""
JWT WebSocket Authentication Middleware for Django Channels.

Authenticates WebSocket connections using the same access tokens the REST API
accepts, so dashboard consumers see the authenticated user in ``scope["user"]``.
"""
import logging
from urllib.parse import parse_qs

import jwt
from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseMiddleware):
    """
    Resolve ``scope["user"]`` from a JWT access token.

    Browsers cannot set headers on a WebSocket handshake, so the token is read
    from the ``access_token`` cookie and, failing that, from a ``token`` query
    string parameter.
    """

    async def __call__(self, scope, receive, send):
        # Only process WebSocket connections
        if scope["type"] != "websocket":
            return await super().__call__(scope, receive, send)

        scope = dict(scope)
        scope["user"] = await self.get_user_from_jwt(scope)

        return await super().__call__(scope, receive, send)

    def extract_token(self, scope):
        headers = dict(scope.get("headers", []))
        cookie_header = headers.get(b"cookie", b"").decode("utf-8")

        cookies = {}
        for cookie in cookie_header.split("; "):
            if "=" in cookie:
                key, value = cookie.split("=", 1)
                cookies[key] = value

        access_token = cookies.get(settings.SIMPLE_JWT.get("AUTH_COOKIE", "access_token"))
        if access_token:
            return access_token

        query = parse_qs(scope.get("query_string", b"").decode("utf-8"))
        tokens = query.get("token")
        return tokens[0] if tokens else None

    async def get_user_from_jwt(self, scope):
        access_token = self.extract_token(scope)

        if not access_token:
            logger.debug("No JWT access token found in WebSocket handshake")
            return AnonymousUser()

        jwt_config = settings.SIMPLE_JWT
        try:
            payload = jwt.decode(
                access_token,
                jwt_config.get("SIGNING_KEY", settings.SECRET_KEY),
                algorithms=[jwt_config.get("ALGORITHM", "HS256")],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                },
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Expired JWT token in WebSocket connection")
            return AnonymousUser()
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token in WebSocket connection: {e}")
            return AnonymousUser()

        user_id = payload.get(jwt_config.get("USER_ID_CLAIM", "user_id"))
        if not user_id:
            logger.warning("JWT payload missing user_id")
            return AnonymousUser()

        User = get_user_model()
        try:
            user = await database_sync_to_async(User.objects.get)(id=user_id, is_active=True)
        except User.DoesNotExist:
            logger.warning(f"User {user_id} from JWT not found")
            return AnonymousUser()

        logger.info(f"WebSocket authenticated: user={user.email}, role={user.role}")
        return user
