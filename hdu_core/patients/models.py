# backend/hdu_core/patients/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

from hdu_core.common.models import UUIDModel


class Gender(models.TextChoices):
    MALE = "Male", "Male"
    FEMALE = "Female", "Female"
    OTHER = "Other", "Other"


class MaritalStatus(models.TextChoices):
    SINGLE = "Single", "Single"
    MARRIED = "Married", "Married"
    DIVORCED = "Divorced", "Divorced"
    WIDOWED = "Widowed", "Widowed"
    UNKNOWN = "Unknown", "Unknown"


class Patient(UUIDModel):
    """
    HDU patient. Created on admission (full or urgent), hard-deleted on discharge.

    Urgent admissions may start with nothing but a number; ``is_incomplete``
    stays set until full name and gender are filled in.
    """
    patient_number = models.CharField(max_length=32, unique=True)
    full_name = models.CharField(max_length=255, blank=True)
    nic_passport = models.CharField(max_length=64, unique=True, null=True, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    age = models.PositiveSmallIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=16, choices=Gender.choices, blank=True)
    marital_status = models.CharField(max_length=16, choices=MaritalStatus.choices, blank=True)
    contact_number = models.CharField(max_length=32, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    is_urgent_admission = models.BooleanField(default=False)
    is_incomplete = models.BooleanField(default=False, db_index=True)

    class Meta:
        db_table = "patients"
        indexes = [
            models.Index(fields=["full_name"]),
        ]

    def __str__(self) -> str:
        return f"{self.full_name or 'Unnamed'} ({self.patient_number})"

    @property
    def active_admission(self):
        return self.admissions.filter(status=AdmissionStatus.ACTIVE).order_by("-admission_datetime").first()


class AdmissionStatus(models.TextChoices):
    ACTIVE = "Active", "Active"
    DISCHARGED = "Discharged", "Discharged"
    TRANSFERRED = "Transferred", "Transferred"


class Department(models.TextChoices):
    ICU = "ICU", "ICU"
    SURGERY = "Surgery", "Surgery"
    MEDICAL = "Medical", "Medical"
    HDU = "HDU", "HDU"


class Admission(UUIDModel):
    """
    One stay. At most one Active admission per patient (checked in services).
    """
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="admissions")
    department = models.CharField(max_length=16, choices=Department.choices, default=Department.HDU)
    consultant_in_charge = models.CharField(max_length=255, blank=True)
    admission_datetime = models.DateTimeField(default=timezone.now)
    discharge_datetime = models.DateTimeField(null=True, blank=True)
    discharge_notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=16,
        choices=AdmissionStatus.choices,
        default=AdmissionStatus.ACTIVE,
        db_index=True,
    )
    admitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="admissions_recorded",
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "admissions"
        indexes = [
            models.Index(fields=["patient", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.patient_id} {self.status} since {self.admission_datetime:%Y-%m-%d}"


class PregnancyStatus(models.TextChoices):
    NOT_APPLICABLE = "Not Applicable", "Not Applicable"
    PREGNANT = "Pregnant", "Pregnant"
    NOT_PREGNANT = "Not Pregnant", "Not Pregnant"


class BloodType(models.TextChoices):
    A_POS = "A+", "A+"
    A_NEG = "A-", "A-"
    B_POS = "B+", "B+"
    B_NEG = "B-", "B-"
    O_POS = "O+", "O+"
    O_NEG = "O-", "O-"
    AB_POS = "AB+", "AB+"
    AB_NEG = "AB-", "AB-"
    UNKNOWN = "Unknown", "Unknown"


class MedicalRecord(UUIDModel):
    patient = models.OneToOneField(Patient, on_delete=models.CASCADE, related_name="medical_record")
    known_allergies = models.TextField(blank=True)
    medical_history = models.TextField(blank=True)
    current_medications = models.TextField(blank=True)
    pregnancy_status = models.CharField(
        max_length=16,
        choices=PregnancyStatus.choices,
        default=PregnancyStatus.NOT_APPLICABLE,
    )
    blood_type = models.CharField(max_length=8, choices=BloodType.choices, default=BloodType.UNKNOWN)
    initial_diagnosis = models.TextField(blank=True)

    class Meta:
        db_table = "medical_records"


class Relationship(models.TextChoices):
    SPOUSE = "Spouse", "Spouse"
    PARENT = "Parent", "Parent"
    CHILD = "Child", "Child"
    FRIEND = "Friend", "Friend"
    OTHER = "Other", "Other"


class EmergencyContact(UUIDModel):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="emergency_contacts")
    name = models.CharField(max_length=255)
    relationship = models.CharField(max_length=16, choices=Relationship.choices, default=Relationship.OTHER)
    contact_number = models.CharField(max_length=32, blank=True)
    is_primary = models.BooleanField(default=True)

    class Meta:
        db_table = "emergency_contacts"
        ordering = ["-is_primary", "created_at"]
