from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="notification",
            name="type",
            field=models.CharField(
                choices=[
                    ("new_order", "New order"),
                    ("order_paid", "Order paid"),
                    ("order_cancelled", "Order cancelled"),
                    ("refund_processed", "Refund processed"),
                    ("payment_failed", "Payment failed"),
                    ("shipment_failed", "Shipment failed"),
                    ("payment_orphaned", "Payment needs manual refund"),
                ],
                max_length=40,
            ),
        ),
    ]
