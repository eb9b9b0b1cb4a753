"""Tests for PatientContact validation."""

import pytest

from django_vaccine_booking.exceptions import ValidationError
from django_vaccine_booking.patients import PatientContact


class TestPatientContact:
    """Tests for PatientContact.validate."""

    def test_strips_whitespace(self):
        contact = PatientContact(name="  Jane Doe ", email=" jane@example.com ").validate()

        assert contact.name == "Jane Doe"
        assert contact.email == "jane@example.com"

    def test_phone_only_is_enough(self):
        contact = PatientContact(name="Jane Doe", phone="416-555-0101").validate()

        assert contact.email == ""

    def test_name_required(self):
        with pytest.raises(ValidationError) as exc_info:
            PatientContact(name="   ", email="jane@example.com").validate()

        assert exc_info.value.field == "name"

    def test_email_or_phone_required(self):
        with pytest.raises(ValidationError) as exc_info:
            PatientContact(name="Jane Doe").validate()

        assert exc_info.value.field == "email"

    @pytest.mark.parametrize(
        "email",
        [
            "jane",
            "jane@",
            "jane@example",
            "ja ne@example.com",
            "foo@bar.c<script>",
            "x@@y..z",
        ],
    )
    def test_rejects_malformed_email(self, email):
        with pytest.raises(ValidationError) as exc_info:
            PatientContact(name="Jane Doe", email=email).validate()

        assert exc_info.value.field == "email"

    @pytest.mark.parametrize("email", ["jane.doe+flu@example.com", "j@mail.example.co.uk"])
    def test_accepts_valid_email(self, email):
        assert PatientContact(name="Jane Doe", email=email).validate().email == email

    def test_as_model_fields(self, patient):
        assert patient.as_model_fields() == {
            "patient_name": "Jane Doe",
            "patient_email": "jane@example.com",
            "patient_phone": "416-555-0101",
        }

    @pytest.mark.django_db
    def test_from_record(self, prefilled, clinic_day, patient):
        from django_vaccine_booking.services import book_slot

        booking = book_slot(prefilled, clinic_day, patient)

        assert PatientContact.from_record(booking) == patient


class TestPackageUsage:
    """The imports shown in the package docstring resolve."""

    def test_documented_imports(self):
        import django_vaccine_booking
        from django_vaccine_booking.patients import PatientContact as Contact
        from django_vaccine_booking.services import request_vaccination

        assert Contact is PatientContact
        assert callable(request_vaccination)
        assert "from django_vaccine_booking.patients import PatientContact" in django_vaccine_booking.__doc__
