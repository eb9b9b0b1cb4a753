"""Django admin configuration for vaccine booking.

Capacity counters are read-only here; they only change through the
services so the booking invariants hold.
"""

from django import forms
from django.contrib import admin

from .models import (
    Booking,
    ClinicDay,
    Notification,
    PharmacySettings,
    Pool,
    PoolMember,
    Stock,
    Vaccine,
    WaitlistEntry,
    WalkInWindow,
)


class StockInline(admin.StackedInline):
    """Inline for viewing stock counters."""

    model = Stock
    extra = 0
    can_delete = False
    readonly_fields = ['total_stock', 'allocated_stock', 'updated_at']


@admin.register(Vaccine)
class VaccineAdmin(admin.ModelAdmin):
    """Admin for Vaccine model."""

    list_display = ['name', 'vaccine_type', 'doses_per_vial', 'is_active', 'created_at']
    list_filter = ['vaccine_type', 'is_active']
    search_fields = ['name']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [StockInline]

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None and obj.is_referenced():
            # Packaging is frozen once pools, days or bookings exist
            fields += ['vaccine_type', 'doses_per_vial']
        return fields


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    """Admin for Stock model."""

    list_display = ['vaccine', 'total_stock', 'allocated_stock', 'get_available']
    readonly_fields = ['id', 'vaccine', 'total_stock', 'allocated_stock', 'created_at', 'updated_at']

    @admin.display(description='Available')
    def get_available(self, obj):
        return obj.available


class WalkInWindowInline(admin.TabularInline):
    """Inline for walk-in windows of a clinic day."""

    model = WalkInWindow
    extra = 0
    fields = ['start_time', 'end_time']


class ClinicDayAdminForm(forms.ModelForm):
    """Rejects capacity below what is already booked."""

    class Meta:
        model = ClinicDay
        fields = '__all__'

    def clean_allocated_doses(self):
        allocated = self.cleaned_data.get('allocated_doses')
        if allocated is None:
            return allocated
        if allocated < 1:
            raise forms.ValidationError('Capacity must be at least 1.')
        if self.instance.pk and allocated < self.instance.booked_doses:
            raise forms.ValidationError(
                f'{self.instance.booked_doses} doses are already booked on this day.'
            )
        return allocated


@admin.register(ClinicDay)
class ClinicDayAdmin(admin.ModelAdmin):
    """Admin for ClinicDay model."""

    form = ClinicDayAdminForm
    list_display = ['clinic_date', 'vaccine', 'booked_doses', 'allocated_doses', 'is_active']
    list_filter = ['vaccine', 'is_active']
    date_hierarchy = 'clinic_date'
    readonly_fields = ['id', 'booked_doses', 'created_at', 'updated_at']
    inlines = [WalkInWindowInline]

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields.append('vaccine')
        return fields


class PoolMemberInline(admin.TabularInline):
    """Inline for viewing pool members."""

    model = PoolMember
    extra = 0
    fields = ['patient_name', 'patient_email', 'patient_phone', 'status', 'is_original_member', 'joined_at']
    readonly_fields = ['joined_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Pool)
class PoolAdmin(admin.ModelAdmin):
    """Admin for Pool model.

    Status changes go through the services so the state graph is kept.
    """

    list_display = ['id', 'vaccine', 'status', 'proposed_date', 'confirmation_deadline', 'created_at']
    list_filter = ['status', 'vaccine']
    readonly_fields = [
        'id',
        'vaccine',
        'status',
        'clinic_day',
        'proposed_date',
        'confirmation_deadline',
        'opened_at',
        'closed_at',
        'created_at',
        'updated_at',
    ]
    inlines = [PoolMemberInline]


@admin.register(PoolMember)
class PoolMemberAdmin(admin.ModelAdmin):
    """Admin for PoolMember model."""

    list_display = ['patient_name', 'pool', 'status', 'is_original_member', 'joined_at', 'responded_at']
    list_filter = ['status', 'is_original_member']
    search_fields = ['patient_name', 'patient_email', 'patient_phone']
    readonly_fields = ['id', 'pool', 'confirmation_token', 'joined_at', 'responded_at', 'created_at', 'updated_at']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin for Booking model."""

    list_display = ['patient_name', 'vaccine', 'clinic_day', 'booking_type', 'status', 'created_at']
    list_filter = ['status', 'booking_type', 'vaccine']
    search_fields = ['patient_name', 'patient_email', 'patient_phone']
    readonly_fields = [
        'id',
        'vaccine',
        'clinic_day',
        'pool_member',
        'status',
        'booking_type',
        'cancellation_token',
        'cancelled_at',
        'created_at',
        'updated_at',
    ]


@admin.register(WaitlistEntry)
class WaitlistEntryAdmin(admin.ModelAdmin):
    """Admin for WaitlistEntry model."""

    list_display = ['patient_name', 'vaccine', 'status', 'created_at', 'notified_at']
    list_filter = ['status', 'vaccine']
    search_fields = ['patient_name', 'patient_email', 'patient_phone']
    readonly_fields = ['id', 'created_at', 'updated_at', 'notified_at', 'resolved_at']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Admin for the notification outbox."""

    list_display = ['kind', 'recipient_name', 'status', 'created_at', 'dispatched_at']
    list_filter = ['kind', 'status']
    search_fields = ['recipient_name', 'recipient_email', 'recipient_phone']
    readonly_fields = [
        'id',
        'kind',
        'payload',
        'booking',
        'pool_member',
        'waitlist_entry',
        'dispatched_at',
        'last_error',
        'created_at',
        'updated_at',
    ]


@admin.register(PharmacySettings)
class PharmacySettingsAdmin(admin.ModelAdmin):
    """Admin for the pharmacy settings singleton."""

    list_display = ['pharmacy_name', 'pharmacy_phone', 'initialized']
    readonly_fields = ['initialized', 'initialized_at', 'updated_at']

    def has_add_permission(self, request):
        return not PharmacySettings.objects.exists()

    def has_delete_permission(self, request, obj=None):
        return False
