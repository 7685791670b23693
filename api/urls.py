from django.urls import path
from .views import (
    StartupListCreateAPIView,
    StartupDetailAPIView,
    StartupAdminAPIView,
    StartupRevenueAPIView,
    StartupRefreshAPIView,
    StartupFounderCreateAPIView,
    FounderDeleteAPIView,
    FounderListAPIView,
    FounderDetailAPIView,
    XProfileAPIView,
    AdListCreateAPIView,
    AdSpotAPIView,
    AdStatusAPIView,
    AdCancelAPIView,
    AdCheckoutAPIView,
    StripeDataAPIView,
    SitemapAPIView,
)
from rest_framework.authtoken import views as drf_views
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView
from .views import JwtRefreshCookieView, JwtLogoutView, LoginCookieView, LogoutCookieView, MeView

urlpatterns = [
    # Leaderboard and startup pages
    path('startups/', StartupListCreateAPIView.as_view(), name='startups'),
    path('startups/id/<int:pk>/', StartupAdminAPIView.as_view(), name='startup-admin'),
    path('startups/id/<int:pk>/founders/', StartupFounderCreateAPIView.as_view(), name='startup-founders'),
    path('startups/id/<int:pk>/refresh/', StartupRefreshAPIView.as_view(), name='startup-refresh'),
    path('startups/<slug:slug>/', StartupDetailAPIView.as_view(), name='startup-detail'),
    path('startups/<slug:slug>/revenue/', StartupRevenueAPIView.as_view(), name='startup-revenue'),

    # Founders
    path('founders/', FounderListAPIView.as_view(), name='founders'),
    path('founders/<int:pk>/', FounderDeleteAPIView.as_view(), name='founder-delete'),
    path('founders/<str:username>/', FounderDetailAPIView.as_view(), name='founder-detail'),
    path('x-profile/', XProfileAPIView.as_view(), name='x-profile'),

    # Ad marketplace
    path('ads/', AdListCreateAPIView.as_view(), name='ads'),
    path('ads/spots/<str:spot_id>/', AdSpotAPIView.as_view(), name='ad-spot'),
    path('ads/<int:pk>/status/', AdStatusAPIView.as_view(), name='ad-status'),
    path('ads/<int:pk>/cancel/', AdCancelAPIView.as_view(), name='ad-cancel'),
    path('checkout/ad/', AdCheckoutAPIView.as_view(), name='checkout-ad'),

    # Platform
    path('stripe-data/', StripeDataAPIView.as_view(), name='stripe-data'),
    path('sitemap/', SitemapAPIView.as_view(), name='sitemap'),

    # Staff auth
    path('token-auth/', drf_views.obtain_auth_token, name='api-token-auth'),
    path('login-cookie/', LoginCookieView.as_view(), name='login-cookie'),
    path('logout-cookie/', LogoutCookieView.as_view(), name='logout-cookie'),
    path('me/', MeView.as_view(), name='me'),
    path('token/refresh-cookie/', JwtRefreshCookieView.as_view(), name='jwt-refresh-cookie'),
    path('token/logout/', JwtLogoutView.as_view(), name='jwt-logout'),

    # OpenAPI / Swagger
    path('schema/', SpectacularAPIView.as_view(), name='schema'),
    path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),
]
