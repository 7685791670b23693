import logging
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.generics import GenericAPIView
from rest_framework.exceptions import AuthenticationFailed
from .serializers import StartupSerializer, StartupCreateSerializer, StartupUpdateSerializer
from .serializers import FounderSerializer, FounderCreateSerializer, FounderSummarySerializer, FounderDetailSerializer
from .serializers import RevenueDataSerializer, AdSerializer, AdContentSerializer, AdPurchaseSerializer, AdStatusSerializer
from .serializers import SpotAvailabilitySerializer, CheckoutResponseSerializer, StripeDataResponseSerializer, SitemapEntrySerializer
from .serializers import SimpleOkSerializer, LoginResponseSerializer, MeResponseSerializer
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter
from .models import Startup, Founder, Ad
from .services import startups as startup_service
from .services import founders as founder_service
from .services import ads as ad_service
from .services.startups import StartupError
from .services.ads import AdError
from . import stripe_client, x_api
from django.contrib.auth import authenticate
from django.core.cache import cache
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework.authtoken.models import Token as DRFToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import TokenError, InvalidToken
from .auth import CookieTokenAuthentication, ACCESS_COOKIE, REFRESH_COOKIE, TOKEN_COOKIE
from django.conf import settings

logger = logging.getLogger(__name__)

# Cookie configuration: allow production to opt into cross-site cookies
COOKIE_SECURE = getattr(settings, 'TRUSTMRR_COOKIE_SECURE', False)
COOKIE_SAMESITE = getattr(settings, 'TRUSTMRR_COOKIE_SAMESITE', 'Lax')
COOKIE_DOMAIN = getattr(settings, 'TRUSTMRR_COOKIE_DOMAIN', None)

STRIPE_DATA_CACHE_KEY = 'stripe_data:platform'
STRIPE_DATA_CACHE_CONTROL = 'public, s-maxage=3600, stale-while-revalidate=86400'
X_PROFILE_CACHE_CONTROL = 'public, s-maxage=86400, stale-while-revalidate=172800'


def _set_auth_cookie(resp, name, value):
    resp.set_cookie(name, value, httponly=True, samesite=COOKIE_SAMESITE, secure=COOKIE_SECURE, domain=COOKIE_DOMAIN, path='/')


def _base_url(request):
    return getattr(settings, 'TRUSTMRR_BASE_URL', '') or request.build_absolute_uri('/').rstrip('/')


# --- Startups ---

class StartupListCreateAPIView(GenericAPIView):
    """Leaderboard of startups (GET) and public startup registration (POST)."""
    serializer_class = StartupSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        summary='Leaderboard of startups with their stored metrics',
        parameters=[
            OpenApiParameter('search', str, description='Case-insensitive match on name, description or website'),
            OpenApiParameter('sort', str, enum=['mrr', 'revenue', 'customers', 'name', 'createdAt']),
            OpenApiParameter('order', str, enum=['asc', 'desc']),
        ],
        responses=StartupSerializer(many=True),
    )
    def get(self, request):
        rows = startup_service.startups_with_metrics(
            search=request.query_params.get('search') or None,
            sort_field=request.query_params.get('sort') or None,
            sort_order=request.query_params.get('order') or None,
        )
        return Response(self.get_serializer(rows, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary='Register a startup from a restricted Stripe key',
        request=StartupCreateSerializer,
        responses={201: StartupSerializer, 400: None},
        examples=[
            OpenApiExample(
                'Register',
                value={'api_key': 'rk_live_...', 'website': 'https://uara.ai', 'founders': ['@jane']},
                request_only=True,
            )
        ]
    )
    def post(self, request):
        ser = StartupCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            startup = startup_service.create_startup(
                ser.validated_data['api_key'],
                website=ser.validated_data.get('website') or None,
                founders=ser.validated_data.get('founders') or [],
            )
        except StartupError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(startup).data, status=status.HTTP_201_CREATED)


class StartupDetailAPIView(GenericAPIView):
    serializer_class = StartupSerializer
    permission_classes = [AllowAny]

    def get(self, request, slug):
        try:
            startup = startup_service.startup_detail(slug)
        except Startup.DoesNotExist:
            return Response({'error': 'Startup not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(self.get_serializer(startup).data, status=status.HTTP_200_OK)


class StartupAdminAPIView(GenericAPIView):
    """Staff edits and deletion of a startup by primary key."""
    serializer_class = StartupSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    @extend_schema(request=StartupUpdateSerializer, responses={200: StartupSerializer, 400: None, 404: None})
    def patch(self, request, pk):
        startup = get_object_or_404(Startup, pk=pk)
        ser = StartupUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        try:
            startup = startup_service.update_startup(startup, **ser.validated_data)
        except StartupError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(startup).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        startup = get_object_or_404(Startup, pk=pk)
        startup_service.delete_startup(startup)
        return Response(status=status.HTTP_204_NO_CONTENT)


class StartupRevenueAPIView(GenericAPIView):
    """Daily revenue and MRR points for the startup revenue chart."""
    serializer_class = RevenueDataSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        summary='Revenue chart data',
        parameters=[OpenApiParameter('range', str, enum=['7d', '14d', '30d', 'all'], default='30d')],
        responses={200: RevenueDataSerializer, 400: None, 404: None, 500: None},
        examples=[
            OpenApiExample(
                'Revenue',
                value={'data_points': [{'date': '2025-01-01', 'revenue': 120.0, 'mrr': 1500.0}], 'currency': 'USD'},
                response_only=True,
            )
        ]
    )
    def get(self, request, slug):
        time_range = request.query_params.get('range') or '30d'
        try:
            data = startup_service.startup_revenue_data(slug, time_range)
        except Startup.DoesNotExist:
            return Response({'error': 'Startup not found'}, status=status.HTTP_404_NOT_FOUND)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except stripe_client.MetricsUnavailable as e:
            return Response({'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(data, status=status.HTTP_200_OK)


class StartupRefreshAPIView(GenericAPIView):
    """Trigger a metrics refresh for one startup (enqueues a Celery task)."""
    serializer_class = SimpleOkSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    @extend_schema(
        summary='Refresh metrics (enqueue or run sync fallback)',
        responses={202: SimpleOkSerializer, 200: StartupSerializer, 404: None, 500: None},
        examples=[
            OpenApiExample('Enqueued', value={'ok': True, 'message': 'enqueued'}, response_only=True),
        ]
    )
    def post(self, request, pk):
        startup = get_object_or_404(Startup, pk=pk)
        # resolved at call time so tests can patch api.tasks
        from . import tasks
        try:
            tasks.refresh_startup_metrics_task.delay(startup.pk)
            return Response({'ok': True, 'message': 'enqueued'}, status=status.HTTP_202_ACCEPTED)
        except Exception:
            logger.exception('failed to enqueue metrics refresh for startup %s', startup.pk)

        metrics = startup_service.refresh_startup_metrics(startup)
        if metrics is None:
            return Response({'error': startup_service.METRICS_ERROR_MESSAGE}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(StartupSerializer(startup).data, status=status.HTTP_200_OK)


# --- Founders ---

class StartupFounderCreateAPIView(GenericAPIView):
    serializer_class = FounderSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    @extend_schema(request=FounderCreateSerializer, responses={201: FounderSerializer, 400: None, 404: None})
    def post(self, request, pk):
        startup = get_object_or_404(Startup, pk=pk)
        ser = FounderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            founder = startup_service.add_founder(startup, ser.validated_data['x_username'])
        except StartupError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(founder).data, status=status.HTTP_201_CREATED)


class FounderDeleteAPIView(GenericAPIView):
    serializer_class = FounderSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    def delete(self, request, pk):
        founder = get_object_or_404(Founder, pk=pk)
        startup_service.remove_founder(founder)
        return Response(status=status.HTTP_204_NO_CONTENT)


class FounderListAPIView(GenericAPIView):
    serializer_class = FounderSummarySerializer
    permission_classes = [AllowAny]

    @extend_schema(responses=FounderSummarySerializer(many=True))
    def get(self, request):
        return Response(founder_service.all_founders(), status=status.HTTP_200_OK)


class FounderDetailAPIView(GenericAPIView):
    """A founder, the startups listing them and their aggregated metrics."""
    serializer_class = FounderDetailSerializer
    permission_classes = [AllowAny]

    def get(self, request, username):
        try:
            data = founder_service.founder_by_username(username)
        except Founder.DoesNotExist:
            return Response({'error': 'Founder not found'}, status=status.HTTP_404_NOT_FOUND)
        data['aggregated'] = founder_service.founder_aggregated_metrics(username, startups=data['startups'])
        return Response(self.get_serializer(data).data, status=status.HTTP_200_OK)


class XProfileAPIView(GenericAPIView):
    """Cached X profile lookup for one handle or a comma-separated list."""
    serializer_class = SimpleOkSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[
            OpenApiParameter('username', str),
            OpenApiParameter('usernames', str, description='Comma-separated handles'),
        ],
        responses={200: None, 400: None, 404: None},
    )
    def get(self, request):
        username = request.query_params.get('username')
        usernames = request.query_params.get('usernames')

        if username:
            profile = x_api.fetch_x_user_profile(username)
            if not profile:
                return Response({'success': False, 'error': 'User not found or API error'}, status=status.HTTP_404_NOT_FOUND)
            resp = Response({'success': True, 'data': profile, 'cached': True, 'cache_duration': '24 hours'}, status=status.HTTP_200_OK)
            resp['Cache-Control'] = X_PROFILE_CACHE_CONTROL
            return resp

        if usernames is not None:
            handles = [u.strip() for u in usernames.split(',') if u.strip()]
            if not handles:
                return Response({'success': False, 'error': 'No usernames provided'}, status=status.HTTP_400_BAD_REQUEST)
            profiles = x_api.fetch_multiple_x_user_profiles(handles)
            resp = Response({
                'success': True,
                'data': profiles,
                'count': len(profiles),
                'cached': True,
                'cache_duration': '24 hours',
            }, status=status.HTTP_200_OK)
            resp['Cache-Control'] = X_PROFILE_CACHE_CONTROL
            return resp

        return Response({'success': False, 'error': 'Missing username or usernames parameter'}, status=status.HTTP_400_BAD_REQUEST)


# --- Ads ---

class AdListCreateAPIView(GenericAPIView):
    """Running ads (public GET) and staff-recorded ad purchases (POST)."""
    serializer_class = AdContentSerializer

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAdminUser()]
        return [AllowAny()]

    @extend_schema(responses=AdContentSerializer(many=True))
    def get(self, request):
        return Response(self.get_serializer(ad_service.active_ads(), many=True).data, status=status.HTTP_200_OK)

    @extend_schema(request=AdPurchaseSerializer, responses={201: AdSerializer, 400: None})
    def post(self, request):
        ser = AdPurchaseSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        try:
            ad = ad_service.create_ad_purchase(
                data['spot_id'],
                data['startup'],
                tagline=data.get('tagline'),
                duration_months=data.get('duration_months', 1),
                stripe_session_id=data.get('stripe_session_id'),
            )
        except AdError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(AdSerializer(ad).data, status=status.HTTP_201_CREATED)


class AdSpotAPIView(GenericAPIView):
    serializer_class = SpotAvailabilitySerializer
    permission_classes = [AllowAny]

    def get(self, request, spot_id):
        ad = ad_service.active_ad_for_spot(spot_id)
        payload = {'spot_id': spot_id, 'available': ad is None, 'ad': ad}
        return Response(self.get_serializer(payload).data, status=status.HTTP_200_OK)


class AdStatusAPIView(GenericAPIView):
    serializer_class = AdSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    @extend_schema(request=AdStatusSerializer, responses={200: AdSerializer, 400: None, 404: None})
    def patch(self, request, pk):
        ad = get_object_or_404(Ad, pk=pk)
        ser = AdStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            ad = ad_service.update_ad_status(ad, ser.validated_data['status'], ser.validated_data.get('stripe_payment_id'))
        except AdError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(ad).data, status=status.HTTP_200_OK)


class AdCancelAPIView(GenericAPIView):
    serializer_class = AdSerializer
    permission_classes = [IsAdminUser]
    authentication_classes = [CookieTokenAuthentication]

    @extend_schema(request=None, responses={200: AdSerializer, 404: None})
    def post(self, request, pk):
        ad = get_object_or_404(Ad, pk=pk)
        ad = ad_service.cancel_ad(ad)
        return Response(self.get_serializer(ad).data, status=status.HTTP_200_OK)


class AdCheckoutAPIView(GenericAPIView):
    """Create a Stripe Checkout Session for an ad spot subscription."""
    serializer_class = CheckoutResponseSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        summary='Start ad spot checkout',
        request=None,
        responses={200: CheckoutResponseSerializer, 400: None, 500: None},
        examples=[
            OpenApiExample('Request', value={'spotId': 'homepage-left-1', 'stripePriceId': 'price_123'}, request_only=True),
        ]
    )
    def post(self, request):
        spot_id = request.data.get('spotId')
        price_id = request.data.get('stripePriceId')
        if not spot_id or not price_id:
            return Response({'error': 'Missing required fields: spotId or stripePriceId'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            session = stripe_client.create_ad_checkout_session(spot_id, price_id, _base_url(request))
        except Exception as e:
            logger.exception('Stripe checkout error for spot %s', spot_id)
            return Response({'error': str(e) or 'Failed to create checkout session'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response({'success': True, 'session_id': session['session_id'], 'url': session['url']}, status=status.HTTP_200_OK)


# --- Platform ---

class StripeDataAPIView(GenericAPIView):
    """Business info and metrics of the platform's own Stripe account."""
    serializer_class = StripeDataResponseSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(responses={200: StripeDataResponseSerializer, 500: StripeDataResponseSerializer})
    def get(self, request):
        data = cache.get(STRIPE_DATA_CACHE_KEY)
        if data is None:
            try:
                data = stripe_client.get_business_data(stripe_client.platform_key())
            except Exception as e:
                logger.exception('Failed to fetch platform Stripe data')
                resp = Response({
                    'success': False,
                    'error': str(e) or 'Failed to fetch Stripe data',
                    'timestamp': timezone.now().isoformat(),
                }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
                resp['Cache-Control'] = 'no-store'
                return resp
            cache.set(STRIPE_DATA_CACHE_KEY, data, timeout=getattr(settings, 'TRUSTMRR_METRICS_MAX_AGE', 3600))

        resp = Response({'success': True, 'data': data, 'cached': True, 'cache_expires_in': '1 hour'}, status=status.HTTP_200_OK)
        resp['Cache-Control'] = STRIPE_DATA_CACHE_CONTROL
        return resp


class SitemapAPIView(GenericAPIView):
    """Public URLs: home, listings, every startup and each unique founder."""
    serializer_class = SitemapEntrySerializer
    permission_classes = [AllowAny]

    @extend_schema(responses=SitemapEntrySerializer(many=True))
    def get(self, request):
        base = _base_url(request)
        now = timezone.now()
        entries = [
            {'url': base, 'last_modified': now, 'change_frequency': 'daily', 'priority': 1.0},
            {'url': f'{base}/startup', 'last_modified': now, 'change_frequency': 'daily', 'priority': 0.9},
            {'url': f'{base}/founder', 'last_modified': now, 'change_frequency': 'daily', 'priority': 0.9},
        ]
        for slug, updated_at in Startup.objects.order_by('-updated_at').values_list('slug', 'updated_at'):
            entries.append({'url': f'{base}/startup/{slug}', 'last_modified': updated_at, 'change_frequency': 'weekly', 'priority': 0.8})

        seen = set()
        for handle, updated_at in Founder.objects.order_by('-updated_at').values_list('x_username', 'updated_at'):
            if handle.lower() in seen:
                continue
            seen.add(handle.lower())
            entries.append({'url': f'{base}/founder/{handle}', 'last_modified': updated_at, 'change_frequency': 'weekly', 'priority': 0.7})
        return Response(self.get_serializer(entries, many=True).data, status=status.HTTP_200_OK)


# --- Staff sessions ---

class LoginCookieView(GenericAPIView):
    """Authenticate staff by username/password and set HttpOnly JWT cookies."""
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = LoginResponseSerializer

    def post(self, request):
        username = request.data.get('username')
        password = request.data.get('password')
        if not username or not password:
            return Response({'error': 'username and password required'}, status=status.HTTP_400_BAD_REQUEST)
        user = authenticate(request, username=username, password=password)
        if user is None or not user.is_staff:
            return Response({'error': 'invalid credentials'}, status=status.HTTP_400_BAD_REQUEST)
        refresh = RefreshToken.for_user(user)
        resp = Response({'username': user.username}, status=status.HTTP_200_OK)
        _set_auth_cookie(resp, ACCESS_COOKIE, str(refresh.access_token))
        _set_auth_cookie(resp, REFRESH_COOKIE, str(refresh))
        # DRF token cookie for the CookieTokenAuthentication fallback
        drf_token, _ = DRFToken.objects.get_or_create(user=user)
        _set_auth_cookie(resp, TOKEN_COOKIE, drf_token.key)
        return resp


class LogoutCookieView(GenericAPIView):
    serializer_class = SimpleOkSerializer
    permission_classes = [AllowAny]

    def post(self, request):
        resp = Response({'ok': True}, status=status.HTTP_200_OK)
        resp.delete_cookie(TOKEN_COOKIE)
        return resp


class MeView(GenericAPIView):
    serializer_class = MeResponseSerializer
    permission_classes = [AllowAny]

    def get(self, request):
        if not request.user or not request.user.is_authenticated:
            return Response({'user': None}, status=status.HTTP_200_OK)
        return Response({'user': {'username': request.user.username, 'is_staff': request.user.is_staff}}, status=status.HTTP_200_OK)


class JwtRefreshCookieView(GenericAPIView):
    """Rotate the refresh cookie and issue a new access cookie."""
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = SimpleOkSerializer

    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_COOKIE)
        if not refresh_token:
            return Response({'error': 'no refresh token'}, status=status.HTTP_400_BAD_REQUEST)
        ser = TokenRefreshSerializer(data={'refresh': refresh_token})
        try:
            ser.is_valid(raise_exception=True)
        except (TokenError, InvalidToken, AuthenticationFailed):
            logger.warning('refresh cookie rejected')
            return Response({'error': 'invalid refresh'}, status=status.HTTP_400_BAD_REQUEST)
        resp = Response({'ok': True}, status=status.HTTP_200_OK)
        _set_auth_cookie(resp, ACCESS_COOKIE, ser.validated_data['access'])
        # present only when ROTATE_REFRESH_TOKENS is on
        if 'refresh' in ser.validated_data:
            _set_auth_cookie(resp, REFRESH_COOKIE, ser.validated_data['refresh'])
        return resp


class JwtLogoutView(GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = SimpleOkSerializer

    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_COOKIE)
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()
            except Exception:
                # cookies are cleared regardless
                logger.exception('failed to blacklist refresh token')
        resp = Response({'ok': True}, status=status.HTTP_200_OK)
        resp.delete_cookie(ACCESS_COOKIE)
        resp.delete_cookie(REFRESH_COOKIE)
        return resp
