"""Models for django-vaccine-booking.

Stock and ClinicDay are the shared capacity counters. They are only
mutated through the services package, which locks the rows and applies
conditional updates so the check constraints below can never be violated
by concurrent requests.
"""

import uuid

from django.db import IntegrityError, models, transaction
from django.db.models import F, Q
from django.utils import timezone


# =============================================================================
# Base
# =============================================================================


class SoftDeleteManager(models.Manager):
    """Manager that excludes soft-deleted objects by default."""

    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class VaccineBookingBaseModel(models.Model):
    """Base model with UUID primary key, timestamps and soft delete."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    def soft_delete(self):
        """Mark as deleted without removing from database."""
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])

    def restore(self):
        """Restore a soft-deleted record."""
        self.deleted_at = None
        self.save(update_fields=["deleted_at", "updated_at"])

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class PatientContactModel(VaccineBookingBaseModel):
    """Contact details captured from the intake form."""

    patient_name = models.CharField(max_length=200)
    patient_email = models.EmailField(blank=True, default="")
    patient_phone = models.CharField(max_length=40, blank=True, default="")

    class Meta:
        abstract = True


# =============================================================================
# Choices
# =============================================================================


class VaccineType(models.TextChoices):
    """How doses are packaged."""

    VIAL = "vial", "Multi-dose vial"
    PREFILLED = "prefilled", "Pre-filled syringe"


class PoolStatus(models.TextChoices):
    """Lifecycle of a vial pool."""

    FILLING = "filling", "Filling"
    OPEN = "open", "Open"
    FULL = "full", "Full"
    COMPLETED = "completed", "Completed"


class MemberStatus(models.TextChoices):
    """Response state of a pool member. Exactly one holds at a time."""

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    DECLINED = "declined", "Declined"
    MOVED = "moved", "Moved"
    NO_RESPONSE = "no_response", "No Response"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"


class BookingStatus(models.TextChoices):
    """Status of a committed appointment."""

    CONFIRMED = "confirmed", "Confirmed"
    CANCELLED = "cancelled", "Cancelled"
    COMPLETED = "completed", "Completed"


class BookingType(models.TextChoices):
    """Whether the booking came from a pool or a slot."""

    POOL = "pool", "Pool"
    SLOT = "slot", "Slot"


class WaitlistStatus(models.TextChoices):
    """Resolution of a waitlist entry."""

    WAITING = "waiting", "Waiting"
    NOTIFIED = "notified", "Notified"
    BOOKED = "booked", "Booked"
    REMOVED = "removed", "Removed"


class NotificationKind(models.TextChoices):
    """Events the engine wants the patient to hear about."""

    BOOKING_CONFIRMED = "booking_confirmed", "Booking Confirmed"
    BOOKING_CANCELLED = "booking_cancelled", "Booking Cancelled"
    POOL_JOINED = "pool_joined", "Pool Joined"
    POOL_OPENED = "pool_opened", "Pool Opened"
    WAITLIST_JOINED = "waitlist_joined", "Waitlist Joined"
    WAITLIST_OFFER = "waitlist_offer", "Waitlist Offer"


class NotificationStatus(models.TextChoices):
    """Delivery state of an outbox row."""

    QUEUED = "queued", "Queued"
    DISPATCHED = "dispatched", "Dispatched"
    FAILED = "failed", "Failed"


# =============================================================================
# Catalog
# =============================================================================


class Vaccine(VaccineBookingBaseModel):
    """A vaccine product offered by the pharmacy.

    vaccine_type and doses_per_vial are frozen once any pool, clinic day
    or booking references the vaccine. Only name and is_active may change
    after that.
    """

    name = models.CharField(max_length=200)
    vaccine_type = models.CharField(
        max_length=20,
        choices=VaccineType.choices,
    )
    doses_per_vial = models.PositiveSmallIntegerField(
        default=1,
        help_text="Doses in one vial. Always 1 for pre-filled vaccines.",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(doses_per_vial__gte=1),
                name="vaccine_doses_per_vial_positive",
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def is_vial(self) -> bool:
        return self.vaccine_type == VaccineType.VIAL

    def is_referenced(self) -> bool:
        """True once any pool, clinic day or booking points at this vaccine."""
        return (
            Pool.objects.filter(vaccine=self).exists()
            or ClinicDay.all_objects.filter(vaccine=self).exists()
            or Booking.objects.filter(vaccine=self).exists()
        )


class Stock(VaccineBookingBaseModel):
    """Dose counters for one vaccine.

    total_stock is what is physically on the shelf, allocated_stock is
    what is already committed to bookings.
    """

    vaccine = models.OneToOneField(
        Vaccine,
        on_delete=models.CASCADE,
        related_name="stock",
    )
    total_stock = models.PositiveIntegerField(default=0)
    allocated_stock = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name_plural = "stock"
        constraints = [
            models.CheckConstraint(
                condition=Q(allocated_stock__lte=F("total_stock")),
                name="stock_allocated_lte_total",
            ),
        ]

    def __str__(self):
        return f"{self.vaccine}: {self.available}/{self.total_stock}"

    @property
    def available(self) -> int:
        return max(0, self.total_stock - self.allocated_stock)


# =============================================================================
# Clinic Calendar
# =============================================================================


class ClinicDay(VaccineBookingBaseModel):
    """Dose capacity for one vaccine on one calendar date."""

    vaccine = models.ForeignKey(
        Vaccine,
        on_delete=models.PROTECT,
        related_name="clinic_days",
    )
    clinic_date = models.DateField()
    allocated_doses = models.PositiveIntegerField()
    booked_doses = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["clinic_date", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(booked_doses__lte=F("allocated_doses")),
                name="clinicday_booked_lte_allocated",
            ),
            models.CheckConstraint(
                condition=Q(allocated_doses__gte=1),
                name="clinicday_allocated_positive",
            ),
        ]
        indexes = [
            models.Index(fields=["vaccine", "clinic_date"], name="vb_clinicday_vaccine_date"),
        ]

    def __str__(self):
        return f"{self.vaccine} on {self.clinic_date} ({self.booked_doses}/{self.allocated_doses})"

    @property
    def remaining_doses(self) -> int:
        return max(0, self.allocated_doses - self.booked_doses)

    @property
    def has_capacity(self) -> bool:
        return self.booked_doses < self.allocated_doses

    def is_elapsed(self, today=None) -> bool:
        today = today or timezone.localdate()
        return self.clinic_date < today


class WalkInWindow(VaccineBookingBaseModel):
    """A walk-in time range on a clinic day."""

    clinic_day = models.ForeignKey(
        ClinicDay,
        on_delete=models.CASCADE,
        related_name="walk_in_windows",
    )
    start_time = models.TimeField()
    end_time = models.TimeField()

    class Meta:
        ordering = ["start_time"]
        constraints = [
            models.CheckConstraint(
                condition=Q(start_time__lt=F("end_time")),
                name="walkinwindow_start_before_end",
            ),
        ]

    def __str__(self):
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


# =============================================================================
# Pools
# =============================================================================


class Pool(VaccineBookingBaseModel):
    """A group of patients waiting for a vial of one vaccine to be opened.

    At most one pool per vaccine may be filling or open at any time.
    """

    ACTIVE_STATUSES = (PoolStatus.FILLING, PoolStatus.OPEN)

    vaccine = models.ForeignKey(
        Vaccine,
        on_delete=models.PROTECT,
        related_name="pools",
    )
    status = models.CharField(
        max_length=20,
        choices=PoolStatus.choices,
        default=PoolStatus.FILLING,
    )
    clinic_day = models.ForeignKey(
        ClinicDay,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pools",
        help_text="Clinic day the pool lands on once opened",
    )
    proposed_date = models.DateField(null=True, blank=True)
    confirmation_deadline = models.DateTimeField(null=True, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["vaccine"],
                condition=Q(status__in=["filling", "open"]),
                name="pool_one_active_per_vaccine",
            ),
        ]
        indexes = [
            models.Index(fields=["vaccine", "status"], name="vb_pool_vaccine_status"),
        ]

    def __str__(self):
        return f"{self.vaccine} pool ({self.status})"

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def is_past_deadline(self, now=None) -> bool:
        """Pure time comparison; False until the pool has a deadline."""
        if self.confirmation_deadline is None:
            return False
        now = now or timezone.now()
        return now > self.confirmation_deadline


class PoolMember(PatientContactModel):
    """A patient who joined a pool."""

    pool = models.ForeignKey(
        Pool,
        on_delete=models.PROTECT,
        related_name="members",
    )
    status = models.CharField(
        max_length=20,
        choices=MemberStatus.choices,
        default=MemberStatus.PENDING,
    )
    is_original_member = models.BooleanField(
        default=True,
        help_text="Joined while the pool was still filling",
    )
    confirmation_token = models.CharField(max_length=128, unique=True)
    joined_at = models.DateTimeField(default=timezone.now)
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["joined_at", "created_at"]
        indexes = [
            models.Index(fields=["pool", "status"], name="vb_poolmember_pool_status"),
        ]

    def __str__(self):
        return f"{self.patient_name} ({self.status})"


# =============================================================================
# Bookings
# =============================================================================


class Booking(PatientContactModel):
    """A committed appointment against clinic-day capacity."""

    vaccine = models.ForeignKey(
        Vaccine,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    clinic_day = models.ForeignKey(
        ClinicDay,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    pool_member = models.ForeignKey(
        PoolMember,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    status = models.CharField(
        max_length=20,
        choices=BookingStatus.choices,
        default=BookingStatus.CONFIRMED,
    )
    booking_type = models.CharField(
        max_length=10,
        choices=BookingType.choices,
        default=BookingType.SLOT,
    )
    cancellation_token = models.CharField(max_length=128, unique=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["clinic_day", "status"], name="vb_booking_day_status"),
            models.Index(fields=["vaccine", "status"], name="vb_booking_vaccine_status"),
        ]

    def __str__(self):
        return f"{self.patient_name} - {self.clinic_day}"

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


# =============================================================================
# Waitlist
# =============================================================================


class WaitlistEntry(PatientContactModel):
    """Demand that could not be satisfied. Offered strictly first-in first-out."""

    vaccine = models.ForeignKey(
        Vaccine,
        on_delete=models.PROTECT,
        related_name="waitlist_entries",
    )
    status = models.CharField(
        max_length=20,
        choices=WaitlistStatus.choices,
        default=WaitlistStatus.WAITING,
    )
    notified_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name_plural = "waitlist entries"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["vaccine", "status", "created_at"],
                name="vb_waitlist_fifo",
            ),
        ]

    def __str__(self):
        return f"{self.patient_name} waiting for {self.vaccine}"


# =============================================================================
# Settings
# =============================================================================


class PharmacySettings(models.Model):
    """Singleton pharmacy settings (pk=1).

    Also carries the one-time initialization flag that guards seeding of
    default rows.
    """

    pharmacy_name = models.CharField(max_length=200, blank=True, default="")
    pharmacy_email = models.EmailField(blank=True, default="")
    pharmacy_phone = models.CharField(max_length=40, blank=True, default="")
    pharmacy_address = models.CharField(max_length=300, blank=True, default="")
    initialized = models.BooleanField(default=False)
    initialized_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "pharmacy settings"
        verbose_name_plural = "pharmacy settings"

    def __str__(self):
        return self.pharmacy_name or "Pharmacy settings"

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from .exceptions import StateConflict

        raise StateConflict("Pharmacy settings cannot be deleted")

    @classmethod
    def get_instance(cls):
        """Get or create the singleton row, tolerating a concurrent create."""
        try:
            with transaction.atomic():
                obj, _ = cls.objects.get_or_create(pk=1)
                return obj
        except IntegrityError:
            return cls.objects.get(pk=1)


# =============================================================================
# Notification outbox
# =============================================================================


class Notification(VaccineBookingBaseModel):
    """A notification the engine wants delivered.

    Rows are written inside the same transaction as the state change that
    caused them. A dispatcher outside the engine sends them and marks them
    dispatched.
    """

    kind = models.CharField(max_length=30, choices=NotificationKind.choices)
    status = models.CharField(
        max_length=20,
        choices=NotificationStatus.choices,
        default=NotificationStatus.QUEUED,
    )
    recipient_name = models.CharField(max_length=200, blank=True, default="")
    recipient_email = models.EmailField(blank=True, default="")
    recipient_phone = models.CharField(max_length=40, blank=True, default="")
    payload = models.JSONField(default=dict, blank=True)

    booking = models.ForeignKey(
        Booking,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    pool_member = models.ForeignKey(
        PoolMember,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    waitlist_entry = models.ForeignKey(
        WaitlistEntry,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    dispatched_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="vb_notification_outbox"),
        ]

    def __str__(self):
        return f"{self.kind} -> {self.recipient_name} ({self.status})"
