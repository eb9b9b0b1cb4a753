"""Django app configuration for django-vaccine-booking."""

from django.apps import AppConfig


class DjangoVaccineBookingConfig(AppConfig):
    """App configuration for django-vaccine-booking."""

    name = "django_vaccine_booking"
    verbose_name = "Vaccine Booking"
    default_auto_field = "django.db.models.BigAutoField"
