from decimal import Decimal
import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Store",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("contact_email", models.EmailField(blank=True, default="", max_length=254)),
                ("is_active", models.BooleanField(default=True)),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("cod_enabled", models.BooleanField(default=True)),
                ("cod_fee", models.DecimalField(decimal_places=2, default=Decimal("20.00"), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("flat_shipping_rate", models.DecimalField(decimal_places=2, default=Decimal("49.00"), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("free_shipping_threshold", models.DecimalField(decimal_places=2, default=Decimal("999.00"), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("tax_rate", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Percentage of subtotal, e.g. 18.00", max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("auto_create_shipment", models.BooleanField(default=True)),
                ("gateway_key_id", models.CharField(blank=True, default="", max_length=120)),
                ("gateway_key_secret_encrypted", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("owner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="stores", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
    ]
