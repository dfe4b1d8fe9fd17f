"""
URL configuration for the stockflow project.

Every app contributes its own urlpatterns under the shared ``api/`` prefix.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Stockflow Admin Panel"
admin.site.site_title = "Stockflow Admin Portal"
admin.site.index_title = "Inventory administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include('stockflow.core.urls')),
    path('api/', include('stockflow.catalog.urls')),
    path('api/', include('stockflow.parties.urls')),
    path('api/', include('stockflow.pricing.urls')),
    path('api/', include('stockflow.transactions.urls')),
    path('api/', include('stockflow.reports.urls')),
]
