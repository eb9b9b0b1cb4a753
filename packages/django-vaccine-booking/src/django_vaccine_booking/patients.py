"""Patient contact value object passed into the services."""

from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from .exceptions import ValidationError


@dataclass(frozen=True)
class PatientContact:
    """Who to book and how to reach them.

    Attributes:
        name: Full name as entered on the intake form
        email: Email address (optional if phone is given)
        phone: Phone number (optional if email is given)
    """

    name: str
    email: str = ""
    phone: str = ""

    def validate(self) -> "PatientContact":
        """Return a stripped copy, or raise ValidationError."""
        name = (self.name or "").strip()
        email = (self.email or "").strip()
        phone = (self.phone or "").strip()

        if not name:
            raise ValidationError("Patient name is required", field="name")
        if not email and not phone:
            raise ValidationError(
                "An email address or phone number is required", field="email"
            )
        if email:
            try:
                validate_email(email)
            except DjangoValidationError as e:
                raise ValidationError(f"Invalid email address: {email}", field="email") from e

        return PatientContact(name=name, email=email, phone=phone)

    def as_model_fields(self) -> dict:
        """Field values for PatientContactModel subclasses."""
        return {
            "patient_name": self.name,
            "patient_email": self.email,
            "patient_phone": self.phone,
        }

    @classmethod
    def from_record(cls, record) -> "PatientContact":
        """Build from a PoolMember, Booking or WaitlistEntry."""
        return cls(
            name=record.patient_name,
            email=record.patient_email,
            phone=record.patient_phone,
        )
