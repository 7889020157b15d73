from rest_framework_simplejwt.authentication import JWTAuthentication
from django.conf import settings


class CookieJWTAuthentication(JWTAuthentication):
    """
    Read the access token from the ``access_token`` cookie.

    Dashboards running in the browser keep the token in an HttpOnly cookie;
    API clients that send an ``Authorization`` header are handled by the stock
    ``JWTAuthentication`` listed after this class.
    """

    def authenticate(self, request):
        access_token = request.COOKIES.get(settings.SIMPLE_JWT["AUTH_COOKIE"])
        if not access_token:
            return None

        validated_token = self.get_validated_token(access_token)
        return self.get_user(validated_token), validated_token
