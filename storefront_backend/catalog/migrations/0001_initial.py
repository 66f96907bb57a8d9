from decimal import Decimal
import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=255)),
                ("sku", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("price", models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("image_url", models.URLField(blank=True, default="", max_length=500)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("active", "Active"), ("published", "Published"), ("archived", "Archived")], default="active", max_length=20)),
                ("track_quantity", models.BooleanField(default=True)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("has_variants", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("store", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="products", to="store.store")),
            ],
            options={
                "ordering": ["title"],
                "indexes": [models.Index(fields=["store", "status"], name="catalog_prod_store_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(blank=True, default="", max_length=64)),
                ("attributes", models.JSONField(blank=True, default=dict)),
                ("price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True, validators=[django.core.validators.MinValueValidator(Decimal("0.00"))])),
                ("image_url", models.URLField(blank=True, default="", max_length=500)),
                ("status", models.CharField(choices=[("active", "Active"), ("disabled", "Disabled")], default="active", max_length=20)),
                ("track_quantity", models.BooleanField(default=True)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="variants", to="catalog.product")),
            ],
            options={
                "ordering": ["product", "sku"],
            },
        ),
    ]
