from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/products/', include('core.urls')),
    path('api/stocks/', include('stock.urls')),
    path('api/reports/', include('reports.urls')),
    path('imports/', include('imports.urls')),
]
