from django.conf import settings
from django.contrib import admin
from django.urls import path, include
from django.conf.urls.static import static

urlpatterns = [
    path('api/', include('core.urls')),
    path('api/', include('accounts.urls')),
    path('api/', include('widgets.urls')),
    path('api/', include('planner.urls')),
    path('api/', include('finance.urls')),
    path('api/', include('contacts.urls')),
    path('api/', include('documents.urls')),
    path('api/', include('community.urls')),
    path('admin/', admin.site.urls),
]

if settings.DEBUG:
    from debug_toolbar.toolbar import debug_toolbar_urls

    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += debug_toolbar_urls()
