# api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from bloodrequests.views import BloodRequestViewSet
from campaigns.views import CampaignViewSet
from donors.views import DonorViewSet
from inventory.views import BloodUnitViewSet
from . import views

router = DefaultRouter()
router.register(r'donors', DonorViewSet, basename='donor')
router.register(r'inventory', BloodUnitViewSet, basename='inventory')
router.register(r'requests', BloodRequestViewSet, basename='request')
router.register(r'campaigns', CampaignViewSet, basename='campaign')

app_name = 'api'

urlpatterns = [
    path('', include(router.urls)),
    path('auth/', include('accounts.urls')),

    # Dashboard
    path('dashboard/stats/', views.dashboard_stats, name='dashboard-stats'),
    path('dashboard/activity/', views.recent_activity, name='dashboard-activity'),
    path('dashboard/blood-distribution/', views.blood_distribution, name='dashboard-blood-distribution'),
    path('dashboard/donation-trends/', views.donation_trends, name='dashboard-donation-trends'),

    path('reports/', views.reports, name='reports'),
    path('health/', views.health, name='health'),
]

# GET/POST   /api/donors/                              - list, add (upsert by email)
# GET/PUT/DELETE /api/donors/{id}/                     - donor detail
# POST       /api/donors/{id}/donation/                - record a donation
# POST       /api/donors/{id}/eligibility/             - eligibility override
# GET        /api/donors/stats/                        - donor counts
#
# GET/POST   /api/inventory/                           - available units, bulk intake
# GET        /api/inventory/summary/ | expiring/       - stock rollups
# POST       /api/inventory/{id}/reserve|issue|return|discard/
#
# GET/POST   /api/requests/                            - list, create
# GET        /api/requests/urgent/ | blood-type/{type}/
# POST       /api/requests/{id}/assign|status|cancel/
# POST       /api/requests/{id}/assignments/{aid}/issue/
#
# GET/POST   /api/campaigns/                           - list, create
# GET        /api/campaigns/active/
# POST       /api/campaigns/{id}/donations|feedback|complete|status/
