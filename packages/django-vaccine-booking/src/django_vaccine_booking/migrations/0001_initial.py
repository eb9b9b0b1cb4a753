# Generated manually for standalone django-vaccine-booking package

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def _base_fields():
    return [
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                primary_key=True,
                serialize=False,
            ),
        ),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
        ("deleted_at", models.DateTimeField(blank=True, null=True)),
    ]


def _patient_fields():
    return [
        ("patient_name", models.CharField(max_length=200)),
        ("patient_email", models.EmailField(blank=True, default="", max_length=254)),
        ("patient_phone", models.CharField(blank=True, default="", max_length=40)),
    ]


MEMBER_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("confirmed", "Confirmed"),
    ("declined", "Declined"),
    ("moved", "Moved"),
    ("no_response", "No Response"),
    ("cancelled", "Cancelled"),
    ("completed", "Completed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vaccine",
            fields=_base_fields() + [
                ("name", models.CharField(max_length=200)),
                (
                    "vaccine_type",
                    models.CharField(
                        choices=[
                            ("vial", "Multi-dose vial"),
                            ("prefilled", "Pre-filled syringe"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "doses_per_vial",
                    models.PositiveSmallIntegerField(
                        default=1,
                        help_text="Doses in one vial. Always 1 for pre-filled vaccines.",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("doses_per_vial__gte", 1)),
                        name="vaccine_doses_per_vial_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Stock",
            fields=_base_fields() + [
                ("total_stock", models.PositiveIntegerField(default=0)),
                ("allocated_stock", models.PositiveIntegerField(default=0)),
                (
                    "vaccine",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock",
                        to="django_vaccine_booking.vaccine",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "stock",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("allocated_stock__lte", models.F("total_stock"))
                        ),
                        name="stock_allocated_lte_total",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ClinicDay",
            fields=_base_fields() + [
                ("clinic_date", models.DateField()),
                ("allocated_doses", models.PositiveIntegerField()),
                ("booked_doses", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "vaccine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="clinic_days",
                        to="django_vaccine_booking.vaccine",
                    ),
                ),
            ],
            options={
                "ordering": ["clinic_date", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["vaccine", "clinic_date"],
                        name="vb_clinicday_vaccine_date",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("booked_doses__lte", models.F("allocated_doses"))
                        ),
                        name="clinicday_booked_lte_allocated",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("allocated_doses__gte", 1)),
                        name="clinicday_allocated_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WalkInWindow",
            fields=_base_fields() + [
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                (
                    "clinic_day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="walk_in_windows",
                        to="django_vaccine_booking.clinicday",
                    ),
                ),
            ],
            options={
                "ordering": ["start_time"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("start_time__lt", models.F("end_time"))),
                        name="walkinwindow_start_before_end",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Pool",
            fields=_base_fields() + [
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("filling", "Filling"),
                            ("open", "Open"),
                            ("full", "Full"),
                            ("completed", "Completed"),
                        ],
                        default="filling",
                        max_length=20,
                    ),
                ),
                ("proposed_date", models.DateField(blank=True, null=True)),
                ("confirmation_deadline", models.DateTimeField(blank=True, null=True)),
                ("opened_at", models.DateTimeField(blank=True, null=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "clinic_day",
                    models.ForeignKey(
                        blank=True,
                        help_text="Clinic day the pool lands on once opened",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="pools",
                        to="django_vaccine_booking.clinicday",
                    ),
                ),
                (
                    "vaccine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="pools",
                        to="django_vaccine_booking.vaccine",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["vaccine", "status"],
                        name="vb_pool_vaccine_status",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["filling", "open"])),
                        fields=("vaccine",),
                        name="pool_one_active_per_vaccine",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PoolMember",
            fields=_base_fields() + _patient_fields() + [
                (
                    "status",
                    models.CharField(
                        choices=MEMBER_STATUS_CHOICES,
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "is_original_member",
                    models.BooleanField(
                        default=True,
                        help_text="Joined while the pool was still filling",
                    ),
                ),
                ("confirmation_token", models.CharField(max_length=128, unique=True)),
                ("joined_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                (
                    "pool",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="members",
                        to="django_vaccine_booking.pool",
                    ),
                ),
            ],
            options={
                "ordering": ["joined_at", "created_at"],
                "indexes": [
                    models.Index(
                        fields=["pool", "status"],
                        name="vb_poolmember_pool_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=_base_fields() + _patient_fields() + [
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="confirmed",
                        max_length=20,
                    ),
                ),
                (
                    "booking_type",
                    models.CharField(
                        choices=[("pool", "Pool"), ("slot", "Slot")],
                        default="slot",
                        max_length=10,
                    ),
                ),
                ("cancellation_token", models.CharField(max_length=128, unique=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "clinic_day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="django_vaccine_booking.clinicday",
                    ),
                ),
                (
                    "pool_member",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="django_vaccine_booking.poolmember",
                    ),
                ),
                (
                    "vaccine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="django_vaccine_booking.vaccine",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["clinic_day", "status"],
                        name="vb_booking_day_status",
                    ),
                    models.Index(
                        fields=["vaccine", "status"],
                        name="vb_booking_vaccine_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WaitlistEntry",
            fields=_base_fields() + _patient_fields() + [
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("waiting", "Waiting"),
                            ("notified", "Notified"),
                            ("booked", "Booked"),
                            ("removed", "Removed"),
                        ],
                        default="waiting",
                        max_length=20,
                    ),
                ),
                ("notified_at", models.DateTimeField(blank=True, null=True)),
                ("resolved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "vaccine",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="waitlist_entries",
                        to="django_vaccine_booking.vaccine",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "waitlist entries",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["vaccine", "status", "created_at"],
                        name="vb_waitlist_fifo",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PharmacySettings",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("pharmacy_name", models.CharField(blank=True, default="", max_length=200)),
                ("pharmacy_email", models.EmailField(blank=True, default="", max_length=254)),
                ("pharmacy_phone", models.CharField(blank=True, default="", max_length=40)),
                ("pharmacy_address", models.CharField(blank=True, default="", max_length=300)),
                ("initialized", models.BooleanField(default=False)),
                ("initialized_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "pharmacy settings",
                "verbose_name_plural": "pharmacy settings",
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=_base_fields() + [
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("booking_confirmed", "Booking Confirmed"),
                            ("booking_cancelled", "Booking Cancelled"),
                            ("pool_joined", "Pool Joined"),
                            ("pool_opened", "Pool Opened"),
                            ("waitlist_joined", "Waitlist Joined"),
                            ("waitlist_offer", "Waitlist Offer"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("queued", "Queued"),
                            ("dispatched", "Dispatched"),
                            ("failed", "Failed"),
                        ],
                        default="queued",
                        max_length=20,
                    ),
                ),
                ("recipient_name", models.CharField(blank=True, default="", max_length=200)),
                ("recipient_email", models.EmailField(blank=True, default="", max_length=254)),
                ("recipient_phone", models.CharField(blank=True, default="", max_length=40)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("last_error", models.TextField(blank=True, default="")),
                (
                    "booking",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="django_vaccine_booking.booking",
                    ),
                ),
                (
                    "pool_member",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="django_vaccine_booking.poolmember",
                    ),
                ),
                (
                    "waitlist_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="notifications",
                        to="django_vaccine_booking.waitlistentry",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="vb_notification_outbox",
                    ),
                ],
            },
        ),
    ]
