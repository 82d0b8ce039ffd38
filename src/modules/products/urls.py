"""Product catalog URL configuration.

Routes ``/products/``, ``/products/{id}/``, ``/products/categories/``
and ``/products/low-stock/``.
"""

from rest_framework.routers import DefaultRouter

from modules.products.views import ProductViewSet

router = DefaultRouter(trailing_slash=True)
router.register("products", ProductViewSet, basename="product")

urlpatterns = router.urls
