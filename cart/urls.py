"""Cart URL routes (v1)."""

from django.urls import path

from .views import (
    CartAddItemView,
    CartClearView,
    CartCompleteView,
    CartDetailView,
    CartItemView,
    CartMergeView,
    CartValidateView,
)

app_name = "cart"

urlpatterns = [
    path("", CartDetailView.as_view(), name="cart-detail"),
    path("items/", CartAddItemView.as_view(), name="cart-add-item"),
    path("items/<uuid:item_id>/", CartItemView.as_view(), name="cart-item"),
    path("clear/", CartClearView.as_view(), name="cart-clear"),
    path("validate/", CartValidateView.as_view(), name="cart-validate"),
    path("complete/", CartCompleteView.as_view(), name="cart-complete"),
    path("merge/", CartMergeView.as_view(), name="cart-merge"),
]
