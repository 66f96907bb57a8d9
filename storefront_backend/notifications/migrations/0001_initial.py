import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("store", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("type", models.CharField(choices=[("new_order", "New order"), ("order_paid", "Order paid"), ("order_cancelled", "Order cancelled"), ("refund_processed", "Refund processed"), ("payment_failed", "Payment failed"), ("shipment_failed", "Shipment failed")], max_length=40)),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField(blank=True, default="")),
                ("priority", models.CharField(choices=[("low", "Low"), ("normal", "Normal"), ("high", "High"), ("urgent", "Urgent")], default="normal", max_length=10)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("store", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to="store.store")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["store", "read"], name="notif_store_read_idx")],
            },
        ),
    ]
