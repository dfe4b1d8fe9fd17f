from django.urls import path
from .views import discount_rule_list_create, discount_rule_detail, discount_preview

urlpatterns = [
    path('discount-rules/', discount_rule_list_create, name='discount-rule-list-create'),
    path('discount-rules/<int:pk>/', discount_rule_detail, name='discount-rule-detail'),
    path('discount-preview/', discount_preview, name='discount-preview'),
]
