"""Partner registration input checks"""
import json
import re
from typing import List, Optional

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from exceptions import ValidationError
from schemas import PartnerApplication
from services.upload_store import UploadedFile
from validators.password_validator import validate_password

# Form field -> name the client sent
REQUIRED_FIELDS = {
    "responsible_name": "responsibleName",
    "contact_email": "contactEmail",
    "email": "email",
    "password": "password",
}

PINCODE_PATTERN = re.compile(r"^\d{6}$")

_email_adapter = TypeAdapter(EmailStr)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_email(value: str, label: str) -> str:
    try:
        return _email_adapter.validate_python(value)
    except PydanticValidationError:
        raise ValidationError(f"Invalid {label}")


def parse_age(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        age = int(value)
    except ValueError:
        raise ValidationError("responsibleAge must be a whole number")
    if age < 0 or age > 150:
        raise ValidationError("responsibleAge is out of range")
    return age


def parse_discount_items(value: Optional[str]) -> List[str]:
    """discountItems arrives as a JSON array string"""
    if value is None:
        return []
    try:
        items = json.loads(value)
    except json.JSONDecodeError:
        raise ValidationError("discountItems must be a JSON array")
    if not isinstance(items, list):
        raise ValidationError("discountItems must be a JSON array")
    return [str(item).strip() for item in items if str(item).strip()]


def validate_application(application: PartnerApplication) -> PartnerApplication:
    """Return a whitespace-trimmed copy, raising ValidationError on bad input"""
    cleaned = PartnerApplication(**{
        key: (value if key == "password" else _clean(value))
        for key, value in application.model_dump().items()
    })

    missing = [label for field, label in REQUIRED_FIELDS.items() if not getattr(cleaned, field)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned.contact_email = _check_email(cleaned.contact_email, "contactEmail")
    cleaned.email = _check_email(cleaned.email, "email").lower()

    try:
        validate_password(cleaned.password)
    except ValueError as e:
        raise ValidationError(str(e))

    if cleaned.pincode and not PINCODE_PATTERN.match(cleaned.pincode):
        raise ValidationError("Invalid pincode format. Pincode must be 6 digits.")

    return cleaned


def validate_uploads(
    passport_photos: List[UploadedFile],
    certificate_files: List[UploadedFile],
    clinic_photos: List[UploadedFile],
    max_bytes: int,
    max_clinic_photos: int
) -> None:
    if len(passport_photos) > 1:
        raise ValidationError("Only one passportPhoto may be uploaded")
    if len(certificate_files) > 1:
        raise ValidationError("Only one certificateFile may be uploaded")
    if len(clinic_photos) > max_clinic_photos:
        raise ValidationError(f"At most {max_clinic_photos} clinicPhotos may be uploaded")

    limit_mb = max_bytes // (1024 * 1024)
    for upload in [*passport_photos, *certificate_files, *clinic_photos]:
        if upload.size > max_bytes:
            raise ValidationError(f"File {upload.filename} exceeds the {limit_mb}MB limit")
