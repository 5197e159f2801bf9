# backend/hdu_core/beds/management/commands/seed_beds.py

from django.conf import settings
from django.core.management.base import BaseCommand

from hdu_core.beds.invariants import check_bed_invariants
from hdu_core.beds.models import Bed


class Command(BaseCommand):
    help = "Create the HDU bed pool (idempotent) and report bed/admission inconsistencies."

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=None, help="Number of beds (default: HDU_BED_COUNT)")

    def handle(self, *args, **options):
        count = options["count"] or settings.HDU_BED_COUNT
        created = 0
        for number in range(1, count + 1):
            _, was_created = Bed.objects.get_or_create(bed_number=number)
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS(f"Beds ready: {count} ({created} created)"))

        for bed_number, problems in check_bed_invariants().items():
            self.stdout.write(self.style.WARNING(f"Bed {bed_number}: {'; '.join(problems)}"))
