from django.db import models


class Customer(models.Model):
    """Customers; the category drives discount eligibility"""
    CATEGORY_REGULAR = 'regular'
    CATEGORY_PREMIUM = 'premium'
    CATEGORY_VIP = 'vip'
    CATEGORY_CHOICES = [
        (CATEGORY_REGULAR, 'Regular'),
        (CATEGORY_PREMIUM, 'Premium'),
        (CATEGORY_VIP, 'VIP'),
    ]

    customer_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_REGULAR)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['name']


class Supplier(models.Model):
    """Suppliers"""
    supplier_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, null=True)
    contact = models.CharField(max_length=200, blank=True, null=True)
    payment_terms = models.CharField(max_length=100, blank=True, null=True)  # e.g. "Net 30", "COD"
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']
