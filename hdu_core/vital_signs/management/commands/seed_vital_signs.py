# backend/hdu_core/vital_signs/management/commands/seed_vital_signs.py

from decimal import Decimal

from django.core.management.base import BaseCommand

from hdu_core.vital_signs.models import VitalDataType, VitalSignsConfig

DEFAULT_VITAL_SIGNS = [
    ("heart_rate", "Heart Rate", "bpm", "60", "100", VitalDataType.INTEGER, "Number of heartbeats per minute"),
    ("respiratory_rate", "Respiratory Rate", "breaths/min", "12", "20", VitalDataType.INTEGER, "Number of breaths per minute"),
    ("blood_pressure_systolic", "Blood Pressure (Systolic)", "mmHg", "90", "120", VitalDataType.INTEGER, "Systolic blood pressure"),
    ("blood_pressure_diastolic", "Blood Pressure (Diastolic)", "mmHg", "60", "80", VitalDataType.INTEGER, "Diastolic blood pressure"),
    ("spo2", "SpO2", "%", "95", "100", VitalDataType.INTEGER, "Oxygen saturation level"),
    ("temperature", "Temperature", "°C", "36.1", "37.2", VitalDataType.DECIMAL, "Body temperature"),
    ("glasgow_coma_scale", "Glasgow Coma Scale", "", "13", "15", VitalDataType.INTEGER, "Glasgow Coma Scale score"),
    ("pain_scale", "Pain Scale", "/10", "0", "3", VitalDataType.INTEGER, "Pain level on a scale of 0-10"),
    ("blood_glucose", "Blood Glucose", "mg/dL", "70", "140", VitalDataType.INTEGER, "Blood glucose level"),
    ("urine_output", "Urine Output", "mL/kg/hr", "0.5", "2.0", VitalDataType.DECIMAL, "Urine output per kilogram per hour"),
]


class Command(BaseCommand):
    help = "Load the default vital sign definitions (idempotent)."

    def handle(self, *args, **options):
        created = 0
        for order, (name, label, unit, lo, hi, data_type, description) in enumerate(DEFAULT_VITAL_SIGNS, start=1):
            _, was_created = VitalSignsConfig.objects.get_or_create(
                name=name,
                defaults={
                    "label": label,
                    "unit": unit,
                    "normal_range_min": Decimal(lo),
                    "normal_range_max": Decimal(hi),
                    "data_type": data_type,
                    "is_active": True,
                    "display_order": order,
                    "description": description,
                },
            )
            created += 1 if was_created else 0

        self.stdout.write(self.style.SUCCESS(f"Vital signs ensured. Newly created: {created}"))
